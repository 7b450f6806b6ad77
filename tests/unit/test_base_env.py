"""Unit tests for the base env file manager."""

import logging

import pytest

from stagecrypt.core.base_env import BaseEnvFileManager


@pytest.fixture
def base_env(tmp_path):
    return BaseEnvFileManager(tmp_path / "envs" / ".env")


def test_get_or_create_creates_missing_file(base_env, caplog):
    with caplog.at_level(logging.WARNING):
        assert base_env.get_or_create_content() == ""
    assert base_env.path.exists()
    assert "Base environment file not found" in caplog.text


def test_store_key_appends_to_new_file(base_env):
    base_env.store_key("SECRET_KEY_DEV", "abc+/=")
    assert base_env.path.read_text() == "SECRET_KEY_DEV=abc+/=\n"


def test_store_key_adds_newline_guard(base_env):
    base_env.path.parent.mkdir(parents=True)
    base_env.path.write_text("OTHER=1")
    base_env.store_key("SECRET_KEY_QA", "xyz")
    assert base_env.path.read_text() == "OTHER=1\nSECRET_KEY_QA=xyz\n"


def test_store_key_overwrites_existing(base_env):
    base_env.path.parent.mkdir(parents=True)
    base_env.path.write_text("# keys\nSECRET_KEY_DEV=old\nSECRET_KEY_QA=keep\n")
    base_env.store_key("SECRET_KEY_DEV", r"new\1+/")
    assert base_env.path.read_text() == "# keys\nSECRET_KEY_DEV=new\\1+/\nSECRET_KEY_QA=keep\n"


def test_store_key_does_not_touch_prefixed_names(base_env):
    base_env.path.parent.mkdir(parents=True)
    base_env.path.write_text("SECRET_KEY_DEV_OLD=1\n")
    base_env.store_key("SECRET_KEY_DEV", "2")
    assert base_env.path.read_text() == "SECRET_KEY_DEV_OLD=1\nSECRET_KEY_DEV=2\n"


def test_get_secret_key_value(base_env):
    base_env.path.parent.mkdir(parents=True)
    base_env.path.write_bytes(b"SECRET_KEY_DEV=abc\r\nSECRET_KEY_QA=def\n")
    assert base_env.get_secret_key_value("SECRET_KEY_DEV") == "abc"
    assert base_env.get_secret_key_value("SECRET_KEY_QA") == "def"
    assert base_env.get_secret_key_value("SECRET_KEY_PROD") is None
