"""AES-256-GCM value encryption plus the outer HMAC-SHA256 integrity layer.

Two independent authentication layers protect every envelope:
- the outer HMAC over salt || iv || cipher_text, checked first
- the GCM tag inside cipher_text, checked by AESGCM.decrypt

A tampered envelope is therefore rejected with IntegrityError before any
decryption is attempted.
"""
import hashlib
import hmac
import os
from typing import Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from stagecrypt.core.exceptions import DecryptionError, IntegrityError

# 96-bit nonce, the size AES-GCM is specified for
IV_LENGTH = 12
KEY_LENGTH = 32
GCM_TAG_LENGTH = 16
HMAC_TAG_LENGTH = 32


def generate_iv() -> bytes:
    return os.urandom(IV_LENGTH)


def _require_key(key: bytes, name: str) -> None:
    if len(key) != KEY_LENGTH:
        raise ValueError(f"{name} must be {KEY_LENGTH} bytes, got {len(key)}")


def encrypt(plaintext: bytes, encryption_key: bytes) -> Tuple[bytes, bytes]:
    """
    Encrypt plaintext under a fresh random IV.
    Returns (iv, cipher_text) where cipher_text has the GCM tag appended.
    """
    _require_key(encryption_key, "encryption_key")
    iv = generate_iv()
    cipher_text = AESGCM(encryption_key).encrypt(iv, plaintext, None)
    return iv, cipher_text


def decrypt(iv: bytes, encryption_key: bytes, cipher_text: bytes) -> bytes:
    """Decrypt cipher_text; raises DecryptionError if the GCM tag does not verify."""
    _require_key(encryption_key, "encryption_key")
    if len(iv) != IV_LENGTH:
        raise DecryptionError(f"IV must be {IV_LENGTH} bytes, got {len(iv)}")
    if len(cipher_text) < GCM_TAG_LENGTH:
        raise DecryptionError("Ciphertext too short to contain GCM tag")
    try:
        return AESGCM(encryption_key).decrypt(iv, cipher_text, None)
    except InvalidTag as e:
        raise DecryptionError("AES-GCM authentication failed (tag mismatch)") from e


def compute_tag(salt: bytes, iv: bytes, cipher_text: bytes, hmac_key: bytes) -> bytes:
    # fixed order: salt, iv, cipher_text
    _require_key(hmac_key, "hmac_key")
    mac = hmac.new(hmac_key, digestmod=hashlib.sha256)
    mac.update(salt)
    mac.update(iv)
    mac.update(cipher_text)
    return mac.digest()


def verify_tag(
    salt: bytes, iv: bytes, cipher_text: bytes, received_tag: bytes, hmac_key: bytes
) -> None:
    """Constant-time check of the outer HMAC; raises IntegrityError on mismatch."""
    expected = compute_tag(salt, iv, cipher_text, hmac_key)
    if not hmac.compare_digest(expected, received_tag):
        raise IntegrityError("Envelope authentication failed (HMAC mismatch)")
