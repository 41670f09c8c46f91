import dataclasses
import os

import pytest

from oksdk.config import ClientConfig
from oksdk.constants import API_URL, DEFAULT_SETTINGS_PREFIX
from oksdk.env import is_truthy, load_env, setup_logging
from oksdk.errors import ConfigurationError

REQUIRED_ENV = {
    "OK_APP_ID": "123",
    "OK_APP_PUBLIC_KEY": "PUBKEY",
    "OK_APP_SECRET_KEY": "SECRET",
    "OK_REDIRECT_URL": "https://example.com/callback",
}


def _set_required_env(monkeypatch) -> None:
    for key, value in REQUIRED_ENV.items():
        monkeypatch.setenv(key, value)
    for key in ("OK_PERMISSIONS", "OK_API_URL", "OK_TOKEN_URL", "OK_AUTHORIZE_URL", "OK_SETTINGS_PREFIX"):
        monkeypatch.delenv(key, raising=False)


def test_from_env_defaults(monkeypatch) -> None:
    _set_required_env(monkeypatch)

    config = ClientConfig.from_env()

    assert config.application_id == "123"
    assert config.public_key == "PUBKEY"
    assert config.secret_key == "SECRET"
    assert config.redirect_url == "https://example.com/callback"
    assert config.permissions == ""
    assert config.api_url == API_URL
    assert config.settings_prefix == DEFAULT_SETTINGS_PREFIX


def test_from_env_overrides(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    monkeypatch.setenv("OK_PERMISSIONS", "VALUABLE_ACCESS;PHOTO_CONTENT")
    monkeypatch.setenv("OK_API_URL", "https://api.ok.ru/fb.do")
    monkeypatch.setenv("OK_SETTINGS_PREFIX", "APP_")

    config = ClientConfig.from_env()

    assert config.permissions == "VALUABLE_ACCESS;PHOTO_CONTENT"
    assert config.api_url == "https://api.ok.ru/fb.do"
    assert config.settings_prefix == "APP_"


def test_from_env_missing(monkeypatch) -> None:
    _set_required_env(monkeypatch)
    monkeypatch.delenv("OK_APP_SECRET_KEY")
    monkeypatch.setenv("OK_REDIRECT_URL", "  ")

    with pytest.raises(ConfigurationError, match="OK_APP_SECRET_KEY, OK_REDIRECT_URL"):
        ClientConfig.from_env()


def test_empty_credentials_rejected() -> None:
    with pytest.raises(ConfigurationError, match="secret_key"):
        ClientConfig("123", "PUBKEY", "", "https://example.com/callback")


def test_relative_endpoint_rejected() -> None:
    with pytest.raises(ConfigurationError, match="token_url"):
        ClientConfig("123", "PUBKEY", "SECRET", "https://example.com/cb", token_url="/token")


def test_config_is_immutable() -> None:
    config = ClientConfig("123", "PUBKEY", "SECRET", "https://example.com/callback")

    with pytest.raises(dataclasses.FrozenInstanceError):
        config.secret_key = "other"


def test_is_truthy() -> None:
    assert is_truthy("1") is True
    assert is_truthy(" Yes ") is True
    assert is_truthy("off") is False
    assert is_truthy(None) is False


def test_load_env_reads_dotenv(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("OK_APP_ID", "placeholder")
    env_file = tmp_path / ".env"
    env_file.write_text("OK_APP_ID=from-dotenv\n", encoding="utf-8")

    assert load_env(env_file) is True
    assert os.environ["OK_APP_ID"] == "from-dotenv"


def test_load_env_missing_file(tmp_path) -> None:
    assert load_env(tmp_path / "missing.env") is False


def test_setup_logging_respects_flag(monkeypatch) -> None:
    monkeypatch.delenv("OK_SDK_DEBUG", raising=False)
    assert setup_logging() is False

    monkeypatch.setenv("OK_SDK_DEBUG", "true")
    assert setup_logging() is True
