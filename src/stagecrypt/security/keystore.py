"""OS keystore integration using keyring for optional mirroring of stage master keys.

Master keys normally live in the base env file as ``SECRET_KEY_<STAGE>``.
When a keyring service name is configured, key generation also stores the
key here and the encryption manager falls back to it when the variable is
missing from the environment. Do not assume keyring provides hardware-backed
security on all platforms.
"""
from typing import Optional

try:
    import keyring
    from keyring.errors import KeyringError, PasswordDeleteError
except ImportError:
    keyring = None


def _require_keyring():
    if keyring is None:
        raise RuntimeError("keyring package is not available; install keyring to use keystore features")


def save_secret_key(service: str, variable: str, secret_key: str) -> None:
    """Persist a base64 master key in the OS keystore under (service, variable)."""
    _require_keyring()
    keyring.set_password(service, variable, secret_key)


def load_secret_key(service: str, variable: str) -> Optional[str]:
    """Load a master key from the OS keystore; returns None when absent."""
    _require_keyring()
    secret = keyring.get_password(service, variable)
    if secret is None or not secret.strip():
        return None
    return secret.strip()


def delete_secret_key(service: str, variable: str) -> None:
    """Remove the key from the OS keystore; a missing entry is not an error."""
    _require_keyring()
    try:
        keyring.delete_password(service, variable)
    except PasswordDeleteError:
        pass


# backend modules that keep keys in an OS-managed keystore
_OS_KEYSTORE_MODULES = (
    "keyring.backends.macOS",
    "keyring.backends.Windows",
    "keyring.backends.SecretService",
    "keyring.backends.libsecret",
    "keyring.backends.kwallet",
)
# backends that refuse to store anything or keep keys in readable files
_WEAK_MODULES = ("keyring.backends.fail", "keyring.backends.null", "keyrings.alt")


def assess_keyring_backend() -> tuple[bool, str]:
    """Tell whether a mirrored master key would land in an OS-managed keystore.

    Returns (acceptable, reason). Third-party backends keyring cannot vouch
    for are accepted with a caution.
    """
    if keyring is None:
        return False, "keyring package is not installed"

    try:
        backend = keyring.get_keyring()
    except KeyringError as e:
        return False, f"keyring backend unavailable: {e}"

    origin = f"{type(backend).__module__}.{type(backend).__name__}"
    if origin.startswith(_WEAK_MODULES):
        return False, f"{origin} does not protect stored keys"

    priority = getattr(backend, "priority", None)
    if priority is not None and priority <= 0:
        return False, f"{origin} is not usable on this system (priority={priority})"

    if origin.startswith(_OS_KEYSTORE_MODULES):
        return True, f"{origin} is an OS keystore"
    return True, f"{origin} is not a known OS keystore; mirror with caution"
