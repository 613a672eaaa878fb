from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


def _getenv(name: str, default: str) -> str:
    # Centralize env access so type casting stays in one place
    return os.environ.get(name, default).strip()


def _getenv_bool(name: str, default: bool) -> bool:
    raw = _getenv(name, "true" if default else "false").lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    port: int
    database_url: str | None
    redis_url: str | None
    log_json: bool = False
    session_cookie_name: str = "session"
    session_ttl_seconds: int = 24 * 60 * 60
    session_cookie_secure: bool = False
    cors_origins: tuple[str, ...] = ()

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    port = _getenv_int("PORT", 8000)

    session_ttl_seconds = _getenv_int("SESSION_TTL_SECONDS", 24 * 60 * 60)
    if session_ttl_seconds <= 0:
        raise ValueError(
            f"SESSION_TTL_SECONDS must be positive (got {session_ttl_seconds})"
        )

    session_cookie_name = _getenv("SESSION_COOKIE_NAME", "session")
    if not session_cookie_name:
        raise ValueError("SESSION_COOKIE_NAME must be non-empty")

    cors_origins = tuple(
        origin.strip()
        for origin in _getenv("CORS_ORIGINS", "").split(",")
        if origin.strip()
    )

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        port=port,
        database_url=_getenv("DATABASE_URL", "") or None,
        redis_url=_getenv("REDIS_URL", "") or None,
        log_json=_getenv_bool("LOG_JSON", False),
        session_cookie_name=session_cookie_name,
        session_ttl_seconds=session_ttl_seconds,
        session_cookie_secure=_getenv_bool("SESSION_COOKIE_SECURE", False),
        cors_origins=cors_origins,
    )
