"""End-to-end flow: generate a stage key, load the environment, encrypt, validate."""

import os
from unittest.mock import patch

import pytest

from stagecrypt.core.environment import EnvironmentSetup
from stagecrypt.core.orchestrator import EnvironmentSecretOrchestrator
from stagecrypt.core.stage import EnvironmentConfig, StageResolver
from stagecrypt.core.validator import EncryptionStatusValidator
from stagecrypt.security.encryption import EncryptionManager
from stagecrypt.security.kdf import ARGON2_PARAMETERS, Argon2Parameters

FAST = Argon2Parameters(time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture
def workspace(tmp_path):
    """An envs/ directory with a dev stage file and an isolated os.environ."""
    env_dir = tmp_path / "envs"
    env_dir.mkdir()
    (env_dir / ".env.dev").write_text(
        "# Portal\n"
        "PORTAL_USERNAME=admin\n"
        "PORTAL_PASSWORD=secret123\n"
        "FOO=\n"
    )
    with patch.dict(os.environ):
        for name in ("ENV", "STAGECRYPT_STAGE", "SECRET_KEY_DEV", "PORTAL_USERNAME", "PORTAL_PASSWORD", "FOO"):
            os.environ.pop(name, None)
        yield env_dir


def _build(env_dir, kdf_params=FAST):
    resolver = StageResolver(EnvironmentConfig(root_directory=env_dir))
    manager = EncryptionManager(kdf_params=kdf_params)
    orchestrator = EnvironmentSecretOrchestrator(encryption_manager=manager, resolver=resolver)
    validator = EncryptionStatusValidator(resolver)
    return resolver, manager, orchestrator, validator


@pytest.mark.integration
def test_full_encryption_flow(workspace):
    resolver, manager, orchestrator, validator = _build(workspace)

    orchestrator.generate_secret_key()
    summary = orchestrator.encrypt_environment_variables(["PORTAL_USERNAME", "PORTAL_PASSWORD"])

    assert summary.encrypted == 2
    assert validator.validate_encryption(["PORTAL_USERNAME", "PORTAL_PASSWORD"]) == {
        "PORTAL_USERNAME": True,
        "PORTAL_PASSWORD": True,
    }
    assert validator.get_unencrypted_variables(["PORTAL_USERNAME", "FOO"]) == ["FOO"]

    # a fresh process: drop the in-memory state and reload from disk
    for name in ("SECRET_KEY_DEV", "PORTAL_USERNAME", "PORTAL_PASSWORD"):
        os.environ.pop(name, None)
    EnvironmentSetup(resolver).initialize()

    assert manager.decrypt_many(
        [os.environ["PORTAL_USERNAME"], os.environ["PORTAL_PASSWORD"]], "SECRET_KEY_DEV"
    ) == ["admin", "secret123"]


@pytest.mark.integration
def test_unknown_target_leaves_file_unchanged(workspace):
    _, _, orchestrator, _ = _build(workspace)
    orchestrator.generate_secret_key()
    before = (workspace / ".env.dev").read_bytes()

    summary = orchestrator.encrypt_environment_variables(["NOT_IN_FILE"])

    assert summary.encrypted == 0
    assert summary.unresolved == ["NOT_IN_FILE"]
    assert (workspace / ".env.dev").read_bytes() == before


@pytest.mark.integration
def test_rerun_is_idempotent(workspace):
    _, _, orchestrator, _ = _build(workspace)
    orchestrator.generate_secret_key()
    orchestrator.encrypt_environment_variables()
    first = (workspace / ".env.dev").read_bytes()

    summary = orchestrator.encrypt_environment_variables()

    assert summary.encrypted == 0
    assert (workspace / ".env.dev").read_bytes() == first


@pytest.mark.integration
def test_roundtrip_with_production_argon2_parameters(workspace):
    """Uses the real 256 MiB cost; slow but pins the default wire parameters."""
    _, manager, orchestrator, _ = _build(workspace, kdf_params=ARGON2_PARAMETERS)
    orchestrator.generate_secret_key()

    encrypted = manager.encrypt("secret123", "SECRET_KEY_DEV")
    assert manager.decrypt(encrypted, "SECRET_KEY_DEV") == "secret123"
