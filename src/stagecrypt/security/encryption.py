"""
Value-level envelope encryption for stage secrets.

EncryptionManager wires the primitives together:

- resolve the stage master key from the environment (or the OS keystore)
- derive a per-value key pair with Argon2id from a fresh random salt
- encrypt with AES-256-GCM under a fresh random IV
- tag salt || iv || cipher_text with HMAC-SHA256
- serialize to an ``ENC2:`` envelope

It never touches files. The orchestrator in ``stagecrypt.core.orchestrator``
is the integration point that rewrites env files.
"""

from __future__ import annotations

import logging
import os
from typing import List, Mapping, Optional, Sequence

from stagecrypt.core.exceptions import DecryptionError, MissingSecretKeyError
from stagecrypt.core.logging_config import capture_error

from . import crypto, envelope
from .kdf import (
    ARGON2_PARAMETERS,
    Argon2Parameters,
    derive_keys,
    generate_salt,
    kdf_params_to_dict,
)
from .keystore import load_secret_key

logger = logging.getLogger(__name__)


class EncryptionManager:
    """
    Encrypt and decrypt single values with a stage master key.

    Batch operations run one value at a time: every Argon2id derivation
    costs 256 MiB, and the first failure must abort the whole batch.
    """

    def __init__(
        self,
        kdf_params: Argon2Parameters = ARGON2_PARAMETERS,
        environ: Optional[Mapping[str, str]] = None,
        keyring_service: Optional[str] = None,
    ):
        self.kdf_params = kdf_params
        self.environ = os.environ if environ is None else environ
        self.keyring_service = keyring_service
        logger.debug("Key derivation parameters: %s", kdf_params_to_dict(kdf_params))

    # ------------------------------------------------------------------
    # Master key lookup
    # ------------------------------------------------------------------

    def resolve_secret_key(self, secret_key_variable: str) -> str:
        """Return the base64 master key stored under ``secret_key_variable``."""
        if not secret_key_variable:
            raise MissingSecretKeyError("Secret key variable name must not be empty")

        value = self.environ.get(secret_key_variable)
        if value and value.strip():
            return value.strip()

        if self.keyring_service:
            stored = load_secret_key(self.keyring_service, secret_key_variable)
            if stored:
                logger.debug("Resolved %s from OS keystore", secret_key_variable)
                return stored

        raise MissingSecretKeyError(
            f"Secret key variable '{secret_key_variable}' is not set. "
            "Generate a key for this stage before encrypting."
        )

    # ------------------------------------------------------------------
    # Single values
    # ------------------------------------------------------------------

    def encrypt(self, value: str, secret_key_variable: str) -> str:
        """Encrypt ``value`` and return its ``ENC2:`` envelope string."""
        if value is None:
            raise ValueError("value must not be None")
        secret_key = self.resolve_secret_key(secret_key_variable)

        # failures propagate unlogged; the caller owns the error report
        salt = generate_salt()
        keys = derive_keys(secret_key, salt, self.kdf_params)
        iv, cipher_text = crypto.encrypt(value.encode("utf-8"), keys.encryption_key)
        tag = crypto.compute_tag(salt, iv, cipher_text, keys.hmac_key)
        return envelope.encode(
            envelope.EncryptionEnvelope(salt=salt, iv=iv, cipher_text=cipher_text, hmac_tag=tag)
        )

    def decrypt(self, encrypted_value: str, secret_key_variable: str) -> str:
        """
        Decrypt an ``ENC2:`` envelope back to its UTF-8 plaintext.

        Order matters: the outer HMAC is verified before AES-GCM runs, so a
        tampered envelope fails with IntegrityError rather than DecryptionError.
        """
        secret_key = self.resolve_secret_key(secret_key_variable)

        try:
            parsed = envelope.decode(encrypted_value)
            keys = derive_keys(secret_key, parsed.salt, self.kdf_params)
            crypto.verify_tag(
                parsed.salt, parsed.iv, parsed.cipher_text, parsed.hmac_tag, keys.hmac_key
            )
            plaintext = crypto.decrypt(parsed.iv, keys.encryption_key, parsed.cipher_text)
            try:
                return plaintext.decode("utf-8")
            except UnicodeDecodeError as e:
                raise DecryptionError("Decrypted value is not valid UTF-8") from e
        except Exception as e:
            capture_error(
                logger, e, "decrypt", "Failed to decrypt value",
                {"secret_key_variable": secret_key_variable},
            )
            raise

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def encrypt_many(self, values: Sequence[str], secret_key_variable: str) -> List[str]:
        """Encrypt values in order; the first failure propagates and nothing is returned."""
        if isinstance(values, str) or not isinstance(values, Sequence):
            raise TypeError("values must be a sequence of strings")
        return [self.encrypt(value, secret_key_variable) for value in values]

    def decrypt_many(self, encrypted_values: Sequence[str], secret_key_variable: str) -> List[str]:
        """Decrypt envelopes in order; the first failure propagates and nothing is returned."""
        if isinstance(encrypted_values, str) or not isinstance(encrypted_values, Sequence):
            raise TypeError("encrypted_values must be a sequence of envelope strings")
        return [self.decrypt(value, secret_key_variable) for value in encrypted_values]
