"""Argon2id key derivation for stagecrypt envelopes.

Every envelope carries its own random salt. Decryption re-derives the exact
key pair used at encrypt time from (master secret, stored salt), so the cost
parameters below are part of the wire format: changing them silently makes
every previously encrypted value undecryptable.
"""
import base64
import binascii
import os
from dataclasses import dataclass
from typing import Dict

from argon2.exceptions import HashingError
from argon2.low_level import Type, hash_secret_raw

from stagecrypt.core.exceptions import KeyDerivationError

SALT_LENGTH = 32
SECRET_KEY_LENGTH = 32
ENCRYPTION_KEY_LENGTH = 32
HMAC_KEY_LENGTH = 32


@dataclass(frozen=True)
class Argon2Parameters:
    time_cost: int
    memory_cost: int  # KiB
    parallelism: int
    hash_len: int = ENCRYPTION_KEY_LENGTH + HMAC_KEY_LENGTH


# 256 MiB, 4 passes, 3 lanes
ARGON2_PARAMETERS = Argon2Parameters(time_cost=4, memory_cost=262144, parallelism=3)


@dataclass(frozen=True)
class DerivedKeyPair:
    encryption_key: bytes
    hmac_key: bytes

    def __repr__(self) -> str:
        return "DerivedKeyPair(encryption_key=<redacted>, hmac_key=<redacted>)"


def generate_salt(length: int = SALT_LENGTH) -> bytes:
    """Return a cryptographically secure random salt."""
    return os.urandom(length)


def generate_secret_key() -> str:
    """Return a fresh random 32-byte master secret, base64-encoded."""
    return base64.b64encode(os.urandom(SECRET_KEY_LENGTH)).decode("ascii")


def decode_secret_key(secret_key: str) -> bytes:
    """
    Decode a base64 master secret and check its length.
    Raises KeyDerivationError for empty, non-base64 or wrong-size input.
    """
    if not secret_key or not secret_key.strip():
        raise KeyDerivationError("Master secret key is empty")
    try:
        raw = base64.b64decode(secret_key.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise KeyDerivationError("Master secret key is not valid base64") from e
    if len(raw) != SECRET_KEY_LENGTH:
        raise KeyDerivationError(
            f"Master secret key must decode to {SECRET_KEY_LENGTH} bytes, got {len(raw)}"
        )
    return raw


def derive_keys(
    secret_key: str,
    salt: bytes,
    params: Argon2Parameters = ARGON2_PARAMETERS,
) -> DerivedKeyPair:
    """
    Derive an AES-256 key and an HMAC-SHA256 key from a master secret and salt.

    The Argon2id output is split in two: the first 32 bytes key AES-GCM, the
    remaining 32 bytes key the outer HMAC. Identical inputs always give an
    identical pair.
    """
    secret = decode_secret_key(secret_key)
    if not salt:
        raise KeyDerivationError("Salt must not be empty")
    if params.hash_len != ENCRYPTION_KEY_LENGTH + HMAC_KEY_LENGTH:
        raise KeyDerivationError(
            f"hash_len must be {ENCRYPTION_KEY_LENGTH + HMAC_KEY_LENGTH}, got {params.hash_len}"
        )

    try:
        raw = hash_secret_raw(
            secret=secret,
            salt=salt,
            time_cost=params.time_cost,
            memory_cost=params.memory_cost,
            parallelism=params.parallelism,
            hash_len=params.hash_len,
            type=Type.ID,
        )
    except HashingError as e:
        raise KeyDerivationError(f"Argon2id derivation failed: {e}") from e

    return DerivedKeyPair(
        encryption_key=raw[:ENCRYPTION_KEY_LENGTH],
        hmac_key=raw[ENCRYPTION_KEY_LENGTH:],
    )


def kdf_params_to_dict(params: Argon2Parameters = ARGON2_PARAMETERS) -> Dict:
    return {
        "algo": "argon2id",
        "time": params.time_cost,
        "memory": params.memory_cost,
        "parallelism": params.parallelism,
        "hash_len": params.hash_len,
    }
