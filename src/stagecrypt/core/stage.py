"""Stage resolution: which env file and which secret key variable apply.

Layout under the env directory (default ``./envs``):

    envs/.env          base file, holds SECRET_KEY_<STAGE> entries
    envs/.env.dev      stage files with the (encrypted) secrets
    envs/.env.qa
    ...
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from .exceptions import InvalidStageError

STAGES = ("dev", "qa", "uat", "preprod", "prod")
DEFAULT_STAGE = "dev"


@dataclass
class EnvironmentConfig:
    root_directory: Path = field(default_factory=lambda: Path.cwd() / "envs")
    base_env_file: str = ".env"
    secret_key_prefix: str = "SECRET_KEY"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EnvironmentConfig":
        """Build a config, honouring ``STAGECRYPT_ENV_DIR`` for the env directory."""
        environ = os.environ if environ is None else environ
        root = environ.get("STAGECRYPT_ENV_DIR")
        if root:
            return cls(root_directory=Path(root).expanduser().resolve())
        return cls()


def current_stage(environ: Optional[Mapping[str, str]] = None) -> str:
    # ENV wins over STAGECRYPT_STAGE; anything unknown falls back to dev
    environ = os.environ if environ is None else environ
    stage = (environ.get("ENV") or environ.get("STAGECRYPT_STAGE") or DEFAULT_STAGE).strip().lower()
    return stage if stage in STAGES else DEFAULT_STAGE


def validate_stage(stage: str) -> str:
    normalized = (stage or "").strip().lower()
    if normalized not in STAGES:
        raise InvalidStageError(
            f"Invalid environment: {stage!r}. Must be one of {', '.join(STAGES)}"
        )
    return normalized


class StageResolver:
    """Maps a stage name to its env file path and secret key variable."""

    def __init__(
        self,
        config: Optional[EnvironmentConfig] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.environ = os.environ if environ is None else environ
        self.config = config or EnvironmentConfig.from_env(self.environ)

    @property
    def stage(self) -> str:
        return current_stage(self.environ)

    @property
    def base_env_file_path(self) -> Path:
        return Path(self.config.root_directory) / self.config.base_env_file

    def stage_file_path(self, stage: Optional[str] = None) -> Path:
        stage = validate_stage(stage) if stage else self.stage
        return Path(self.config.root_directory) / f"{self.config.base_env_file}.{stage}"

    def secret_key_variable(self, stage: Optional[str] = None) -> str:
        stage = validate_stage(stage) if stage else self.stage
        return f"{self.config.secret_key_prefix}_{stage.upper()}"
