"""
Encrypt secrets in a stage env file in place.

One call is one transaction over one file:

    read lines -> parse -> pick targets -> encrypt all -> write once

Any failure before the write leaves the file untouched. There is no locking;
concurrent callers on the same file must be serialized by the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, MutableMapping, Optional, Sequence

from stagecrypt.security import keystore
from stagecrypt.security.encryption import EncryptionManager
from stagecrypt.security.envelope import is_envelope
from stagecrypt.security.kdf import generate_secret_key

from .base_env import BaseEnvFileManager
from .env_file import (
    ENV_VAR_KEY_PATTERN,
    EnvironmentVariableRecord,
    extract_variables,
    find_variable,
    update_lines,
)
from .file_manager import EnvFileManager
from .logging_config import capture_error
from .stage import StageResolver

logger = logging.getLogger(__name__)


@dataclass
class EncryptionOperationSummary:
    file_path: Path
    targeted: int = 0
    encrypted: int = 0
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    unresolved: List[str] = field(default_factory=list)

    @property
    def written(self) -> bool:
        return self.encrypted > 0


class EnvironmentSecretOrchestrator:
    """Stage-aware entry point for key generation and env file encryption."""

    def __init__(
        self,
        encryption_manager: Optional[EncryptionManager] = None,
        resolver: Optional[StageResolver] = None,
        files: Optional[EnvFileManager] = None,
        keyring_service: Optional[str] = None,
    ):
        self.resolver = resolver or StageResolver()
        self.encryption_manager = encryption_manager or EncryptionManager(
            environ=self.resolver.environ, keyring_service=keyring_service
        )
        self.files = files or EnvFileManager()
        self.keyring_service = keyring_service

    # ------------------------------------------------------------------
    # Master key generation
    # ------------------------------------------------------------------

    def generate_secret_key(self, stage: Optional[str] = None) -> str:
        """
        Create a new master key for ``stage`` and store it in the base env file.

        An existing key is overwritten, which makes values encrypted under it
        undecryptable. Returns the variable name; the key itself is never
        returned or logged.
        """
        variable = self.resolver.secret_key_variable(stage)
        base_env = BaseEnvFileManager(self.resolver.base_env_file_path, self.files)
        secret_key = generate_secret_key()

        try:
            base_env.store_key(variable, secret_key)
        except Exception as e:
            capture_error(
                logger, e, "generate_secret_key", f'Failed to generate secret key "{variable}"',
                {"base_env_file": str(base_env.path)},
            )
            raise

        if isinstance(self.resolver.environ, MutableMapping):
            self.resolver.environ[variable] = secret_key

        if self.keyring_service:
            secure, message = keystore.assess_keyring_backend()
            if not secure:
                logger.warning("Mirroring %s to a keyring backend flagged as weak: %s", variable, message)
            keystore.save_secret_key(self.keyring_service, variable, secret_key)

        logger.info("Generated secret key %s in %s", variable, base_env.path.name)
        return variable

    def ensure_secret_key(self, stage: Optional[str] = None) -> str:
        """Reuse the stage key from the environment or base env file; generate only if absent."""
        variable = self.resolver.secret_key_variable(stage)
        if (self.resolver.environ.get(variable) or "").strip():
            return variable

        base_env = BaseEnvFileManager(self.resolver.base_env_file_path, self.files)
        stored = (base_env.get_secret_key_value(variable) or "").strip()
        if not stored:
            return self.generate_secret_key(stage)

        if isinstance(self.resolver.environ, MutableMapping):
            self.resolver.environ[variable] = stored
        logger.debug("Using existing secret key %s from %s", variable, base_env.path.name)
        return variable

    # ------------------------------------------------------------------
    # Env file encryption
    # ------------------------------------------------------------------

    def encrypt_environment_variables(
        self,
        names: Optional[Sequence[str]] = None,
        file_path: Optional[str | Path] = None,
        secret_key_variable: Optional[str] = None,
    ) -> EncryptionOperationSummary:
        """
        Encrypt the plaintext values of ``names`` (or of every variable) in place.

        ``names`` may hold variable names or current values; a value match
        selects the first variable, in file order, holding that value.
        Empty and already-encrypted values are skipped. The first encryption
        failure propagates and nothing is written.
        """
        path = Path(file_path) if file_path else self.resolver.stage_file_path()
        key_variable = secret_key_variable or self.resolver.secret_key_variable()
        summary = EncryptionOperationSummary(file_path=path)

        lines = self.files.read_lines(path)
        variables = extract_variables(lines)
        if not variables:
            logger.warning("No environment variables found in %s", path)
            self._resolve_targets(variables, names, summary)
            return summary

        candidates = self._resolve_targets(variables, names, summary)
        summary.targeted = len(candidates)
        targets = self._filter_encryptable(candidates, summary)

        updated = list(lines)
        for key, record in targets.items():
            try:
                encrypted_value = self.encryption_manager.encrypt(record.value.strip(), key_variable)
            except Exception as e:
                summary.failed.append(key)
                capture_error(
                    logger, e, "encrypt_environment_variables",
                    f"Failed to encrypt variable '{key}'; {path.name} left unchanged",
                    {"file_path": str(path), "variable": key},
                )
                raise
            updated = update_lines(updated, key, encrypted_value)
            summary.encrypted += 1
            logger.debug("Successfully encrypted variable: %s", key)

        if summary.written:
            self.files.write_lines(path, updated)

        self._log_summary(summary)
        return summary

    def _resolve_targets(
        self,
        variables: Dict[str, EnvironmentVariableRecord],
        names: Optional[Sequence[str]],
        summary: EncryptionOperationSummary,
    ) -> Dict[str, EnvironmentVariableRecord]:
        if not names:
            return dict(variables)

        candidates: Dict[str, EnvironmentVariableRecord] = {}
        for lookup in names:
            record = find_variable(variables, lookup)
            if record is None:
                summary.unresolved.append(lookup)
            else:
                candidates[record.key] = record

        if summary.unresolved:
            # a lookup may be a secret value rather than a name; only names are logged
            shown = [
                lookup if ENV_VAR_KEY_PATTERN.match(lookup) else "<value lookup>"
                for lookup in summary.unresolved
            ]
            logger.warning(
                "Environment variables not found in %s: %s",
                summary.file_path.name,
                ", ".join(shown),
                extra={"context": {"unresolved_count": len(summary.unresolved)}},
            )
        return candidates

    def _filter_encryptable(
        self,
        candidates: Dict[str, EnvironmentVariableRecord],
        summary: EncryptionOperationSummary,
    ) -> Dict[str, EnvironmentVariableRecord]:
        targets: Dict[str, EnvironmentVariableRecord] = {}
        filtered: List[str] = []
        for key, record in candidates.items():
            value = record.value.strip()
            if not value:
                summary.skipped.append(key)
                filtered.append(f"{key} (empty value)")
            elif is_envelope(value):
                summary.skipped.append(key)
                filtered.append(key)
            else:
                targets[key] = record

        if filtered:
            logger.info("Skipped variables: %s", ", ".join(filtered))
        return targets

    def _log_summary(self, summary: EncryptionOperationSummary) -> None:
        if summary.encrypted == 0:
            logger.info("No variables needed encryption in %s", summary.file_path)
            return
        details = f", {len(summary.skipped)} skipped" if summary.skipped else ""
        logger.info(
            "Encryption completed. %d variables processed from '%s'%s",
            summary.encrypted,
            summary.file_path.name,
            details,
        )
