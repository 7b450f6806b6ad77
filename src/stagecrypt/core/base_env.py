"""Base env file (``envs/.env``) holding the per-stage master keys."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from .file_manager import EnvFileManager

logger = logging.getLogger(__name__)


def _key_line_regex(key_name: str) -> re.Pattern:
    return re.compile(rf"^{re.escape(key_name)}=(.*)$", re.MULTILINE)


class BaseEnvFileManager:
    """Read and update ``NAME=value`` entries in the base env file."""

    def __init__(self, path: str | Path, files: Optional[EnvFileManager] = None):
        self.path = Path(path)
        self.files = files or EnvFileManager()

    def get_or_create_content(self) -> str:
        if not self.files.exists(self.path):
            logger.warning(
                'Base environment file not found at "%s". A new empty file will be created.',
                self.path,
            )
            self.files.write_text(self.path, "")
            return ""
        return self.files.read_text(self.path)

    def get_secret_key_value(self, key_name: str) -> Optional[str]:
        match = _key_line_regex(key_name).search(self.get_or_create_content())
        if match is None:
            return None
        return match.group(1).rstrip("\r")

    def store_key(self, key_name: str, value: str) -> None:
        """Replace the ``key_name=`` line, or append one when it is absent."""
        content = self.get_or_create_content()
        regex = _key_line_regex(key_name)

        if regex.search(content):
            # function replacement: value is base64 and may contain backslash-like chars
            updated = regex.sub(lambda _: f"{key_name}={value}", content, count=1)
            logger.debug('Key "%s" found and updated', key_name)
        else:
            updated = content
            if updated and not updated.endswith("\n"):
                updated += "\n"
            updated += f"{key_name}={value}\n"
            logger.debug('Key "%s" not found, added to end of file', key_name)

        self.files.write_text(self.path, updated)
