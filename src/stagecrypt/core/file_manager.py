"""
File access for env files.

The orchestrator and validator only see this class; raw filesystem calls stay
here. Writes go to a temporary file in the target directory which then
replaces the original, so readers see either the old or the new content.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import List

from .exceptions import EnvironmentFileNotFoundError, FileIoError

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r?\n")


class EnvFileManager:
    """Read and write env files as text or ordered lines."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def exists(self, path: str | Path) -> bool:
        return Path(path).is_file()

    def read_text(self, path: str | Path) -> str:
        p = Path(path)
        if not p.exists():
            raise EnvironmentFileNotFoundError(f"Environment file not found: {p}", path=p)
        try:
            # newline="" keeps \r\n intact so line splitting stays explicit
            with open(p, "r", encoding=self.encoding, newline="") as f:
                return f.read()
        except OSError as e:
            raise FileIoError(f"Failed to read {p}: {e}", path=p) from e

    def read_lines(self, path: str | Path) -> List[str]:
        """Return the file split on \\n or \\r\\n; an empty file gives []."""
        content = self.read_text(path)
        if not content:
            logger.warning("Environment file is empty: %s", path)
            return []
        return _LINE_BREAK.split(content)

    def write_text(self, path: str | Path, content: str) -> None:
        p = Path(path)
        directory = p.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=directory)
        except OSError as e:
            raise FileIoError(f"Failed to prepare write for {p}: {e}", path=p) from e

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding=self.encoding, newline="") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            if p.exists():
                os.chmod(tmp_path, p.stat().st_mode & 0o777)
            os.replace(tmp_path, p)
        except OSError as e:
            try:
                tmp_path.unlink()
            except FileNotFoundError:
                pass
            raise FileIoError(f"Failed to write {p}: {e}", path=p) from e

    def write_lines(self, path: str | Path, lines: List[str]) -> None:
        self.write_text(path, "\n".join(lines))
        logger.debug("Wrote %d lines to %s", len(lines), path)
