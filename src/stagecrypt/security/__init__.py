"""Security helpers: KDF, AEAD and envelope primitives for stagecrypt.

This package provides:
- Argon2id derivation of a per-value encryption key and HMAC key
- AES-256-GCM value encryption with an outer HMAC-SHA256 tag
- the ``ENC2:`` envelope codec
- EncryptionManager, which combines the above without touching files
"""

from .kdf import (
    ARGON2_PARAMETERS,
    Argon2Parameters,
    DerivedKeyPair,
    derive_keys,
    generate_salt,
    generate_secret_key,
)
from .envelope import EncryptionEnvelope, decode, encode, is_envelope
from .encryption import EncryptionManager
from .keystore import save_secret_key, load_secret_key, delete_secret_key

__all__ = [
    "ARGON2_PARAMETERS",
    "Argon2Parameters",
    "DerivedKeyPair",
    "derive_keys",
    "generate_salt",
    "generate_secret_key",
    "EncryptionEnvelope",
    "encode",
    "decode",
    "is_envelope",
    "EncryptionManager",
    "save_secret_key",
    "load_secret_key",
    "delete_secret_key",
]
