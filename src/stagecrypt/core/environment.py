"""Load the base env file and the current stage file into the process environment."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .stage import StageResolver

logger = logging.getLogger(__name__)


class EnvironmentSetup:
    """
    One-shot loader for ``envs/.env`` and ``envs/.env.<stage>``.

    Both files are loaded with override, stage file last, so a stage value
    shadows the base file. Missing files are logged and skipped.
    """

    def __init__(self, resolver: Optional[StageResolver] = None):
        self.resolver = resolver or StageResolver()
        self.initialized = False
        self.loaded_files: List[str] = []

    def initialize(self) -> List[str]:
        if self.initialized:
            logger.debug("environment already initialized")
            return self.loaded_files

        self._load(self.resolver.base_env_file_path, "base")
        self._load(self.resolver.stage_file_path(), self.resolver.stage)
        self.initialized = True

        if self.loaded_files:
            logger.info(
                "Environment initialized with %d config files: %s",
                len(self.loaded_files),
                ", ".join(self.loaded_files),
            )
        else:
            logger.warning("Environment initialized but no config files were loaded")
        return self.loaded_files

    def _load(self, path: Path, label: str) -> None:
        if not path.is_file():
            logger.warning("Environment file for %s not found at %s", label, path)
            return
        load_dotenv(dotenv_path=path, override=True)
        self.loaded_files.append(path.name)
        logger.info("Loaded environment file: %s", path.name)
