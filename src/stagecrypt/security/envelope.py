"""ENC2 envelope codec.

Wire layout (one line, ASCII):

    ENC2:<b64 salt>:<b64 iv>:<b64 cipher_text>:<b64 hmac_tag>

Standard base64 alphabet with padding. Salt (32), IV (12) and HMAC tag (32)
have fixed sizes checked on decode, so a 16-byte IV or a truncated salt is a
format error rather than a key or cipher failure.
"""
import base64
import binascii
import re
from dataclasses import dataclass

from stagecrypt.core.exceptions import FormatError
from .crypto import HMAC_TAG_LENGTH, IV_LENGTH
from .kdf import SALT_LENGTH

PREFIX = "ENC2:"
SEPARATOR = ":"
EXPECTED_PARTS = 4

_BASE64_SEGMENT = re.compile(r"^[A-Za-z0-9+/]+=*$")


@dataclass(frozen=True)
class EncryptionEnvelope:
    salt: bytes
    iv: bytes
    cipher_text: bytes
    hmac_tag: bytes


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _split(value: str):
    # None when the structure is wrong; callers decide whether that is an error
    if not isinstance(value, str) or not value.startswith(PREFIX):
        return None
    parts = value[len(PREFIX):].split(SEPARATOR)
    if len(parts) != EXPECTED_PARTS:
        return None
    return parts


def encode(envelope: EncryptionEnvelope) -> str:
    fields = (envelope.salt, envelope.iv, envelope.cipher_text, envelope.hmac_tag)
    if any(not field for field in fields):
        raise FormatError("Envelope fields must all be non-empty")
    return PREFIX + SEPARATOR.join(_b64(field) for field in fields)


def decode(value: str) -> EncryptionEnvelope:
    """Parse an ENC2 string; raises FormatError on any structural problem."""
    if not isinstance(value, str) or not value.startswith(PREFIX):
        raise FormatError(f"Invalid encrypted format: missing '{PREFIX}' prefix")

    parts = _split(value)
    if parts is None:
        raise FormatError(
            f"Invalid encrypted format: expected {EXPECTED_PARTS} parts after prefix"
        )

    decoded = []
    for index, part in enumerate(parts):
        if not part:
            raise FormatError(f"Invalid encrypted format: segment {index} is empty")
        if not _BASE64_SEGMENT.match(part):
            raise FormatError(f"Invalid encrypted format: segment {index} is not base64")
        try:
            decoded.append(base64.b64decode(part, validate=True))
        except (binascii.Error, ValueError) as e:
            raise FormatError(
                f"Invalid encrypted format: segment {index} failed base64 decoding"
            ) from e

    salt, iv, cipher_text, hmac_tag = decoded
    for name, field, expected in (
        ("salt", salt, SALT_LENGTH),
        ("IV", iv, IV_LENGTH),
        ("HMAC tag", hmac_tag, HMAC_TAG_LENGTH),
    ):
        if len(field) != expected:
            raise FormatError(
                f"Invalid encrypted format: {name} must be {expected} bytes, got {len(field)}"
            )

    return EncryptionEnvelope(salt=salt, iv=iv, cipher_text=cipher_text, hmac_tag=hmac_tag)


def is_envelope(value) -> bool:
    """
    Cheap structural check: prefix, four non-empty base64 segments.

    Says nothing about whether the value decrypts under the current key.
    """
    parts = _split(value)
    if parts is None:
        return False
    return all(part and _BASE64_SEGMENT.match(part) for part in parts)
