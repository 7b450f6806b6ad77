"""Structural encryption status checks for stage env files."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence

from stagecrypt.security.envelope import is_envelope

from .env_file import extract_variables
from .file_manager import EnvFileManager
from .stage import StageResolver


class EncryptionStatusValidator:
    """
    Report whether stored values look like ENC2 envelopes.

    Nothing is decrypted, so a True result does not prove the value opens
    under the current master key. "Not encrypted" is a result, never an error.
    """

    def __init__(
        self,
        resolver: Optional[StageResolver] = None,
        files: Optional[EnvFileManager] = None,
    ):
        self.resolver = resolver or StageResolver()
        self.files = files or EnvFileManager()

    def _load_values(self, file_path: Optional[str | Path]) -> Dict[str, str]:
        path = Path(file_path) if file_path else self.resolver.stage_file_path()
        records = extract_variables(self.files.read_lines(path))
        return {key: record.value.strip() for key, record in records.items()}

    def validate_encryption(
        self, names: Sequence[str], file_path: Optional[str | Path] = None
    ) -> Dict[str, bool]:
        values = self._load_values(file_path)
        return {name: bool(values.get(name)) and is_envelope(values[name]) for name in names}

    def are_all_encrypted(self, names: Sequence[str], file_path: Optional[str | Path] = None) -> bool:
        return all(self.validate_encryption(names, file_path).values())

    def get_unencrypted_variables(
        self, names: Sequence[str], file_path: Optional[str | Path] = None
    ) -> List[str]:
        results = self.validate_encryption(names, file_path)
        return [name for name, encrypted in results.items() if not encrypted]
