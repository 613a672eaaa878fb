from __future__ import annotations

import pytest

from app.core.config import load_settings
from conftest import make_settings

_ENV_VARS = (
    "APP_ENV",
    "LOG_LEVEL",
    "LOG_JSON",
    "PORT",
    "DATABASE_URL",
    "REDIS_URL",
    "SESSION_COOKIE_NAME",
    "SESSION_TTL_SECONDS",
    "SESSION_COOKIE_SECURE",
    "CORS_ORIGINS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = load_settings()
    assert settings.app_env == "dev"
    assert settings.log_level == "info"
    assert settings.log_json is False
    assert settings.port == 8000
    assert settings.database_url is None
    assert settings.redis_url is None
    assert settings.session_cookie_name == "session"
    assert settings.session_ttl_seconds == 86400
    assert settings.session_cookie_secure is False
    assert settings.cors_origins == ()


def test_values_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "  PROD ")
    monkeypatch.setenv("LOG_LEVEL", "Warning")
    monkeypatch.setenv("LOG_JSON", "yes")
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db/auth")
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/0")
    monkeypatch.setenv("SESSION_COOKIE_NAME", "sid")
    monkeypatch.setenv("SESSION_TTL_SECONDS", "3600")
    monkeypatch.setenv("SESSION_COOKIE_SECURE", "true")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.example, http://b.example,,")

    settings = load_settings()
    assert settings.app_env == "prod"
    assert settings.log_level == "warning"
    assert settings.log_json is True
    assert settings.port == 9000
    assert settings.database_url == "postgresql+asyncpg://u:p@db/auth"
    assert settings.redis_url == "redis://cache:6379/0"
    assert settings.session_cookie_name == "sid"
    assert settings.session_ttl_seconds == 3600
    assert settings.session_cookie_secure is True
    assert settings.cors_origins == ("http://a.example", "http://b.example")


def test_blank_urls_mean_not_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "   ")
    monkeypatch.setenv("REDIS_URL", "")
    settings = load_settings()
    assert settings.database_url is None
    assert settings.redis_url is None


@pytest.mark.parametrize(
    ("name", "value", "error"),
    [
        ("APP_ENV", "staging", "APP_ENV must be dev|test|prod"),
        ("APP_ENV", "", "APP_ENV must be dev|test|prod"),
        ("LOG_LEVEL", "verbose", "LOG_LEVEL must be debug|info|warning|error"),
        ("PORT", "eighty", "PORT must be an integer"),
        ("LOG_JSON", "maybe", "LOG_JSON must be a boolean"),
        ("SESSION_COOKIE_SECURE", "maybe", "SESSION_COOKIE_SECURE must be a boolean"),
        ("SESSION_TTL_SECONDS", "a day", "SESSION_TTL_SECONDS must be an integer"),
        ("SESSION_TTL_SECONDS", "0", "SESSION_TTL_SECONDS must be positive"),
        ("SESSION_TTL_SECONDS", "-5", "SESSION_TTL_SECONDS must be positive"),
        ("SESSION_COOKIE_NAME", "  ", "SESSION_COOKIE_NAME must be non-empty"),
    ],
)
def test_rejects_invalid_values(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str, error: str
) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=error.replace("|", r"\|")):
        load_settings()


@pytest.mark.parametrize("app_env", ["dev", "test", "prod"])
def test_environment_flags(app_env: str) -> None:
    settings = make_settings(app_env=app_env)
    assert settings.is_dev is (app_env == "dev")
    assert settings.is_test is (app_env == "test")
    assert settings.is_prod is (app_env == "prod")


def test_settings_are_frozen() -> None:
    settings = make_settings()
    with pytest.raises(AttributeError):
        settings.session_ttl_seconds = 1  # type: ignore[misc]
