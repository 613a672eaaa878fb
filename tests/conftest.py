from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import app` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.container import Container  # noqa: E402
from app.core.config import Settings  # noqa: E402
from app.main import create_app  # noqa: E402

TEST_EMAIL = "alice@example.com"
TEST_PASSWORD = "Secur3Pass!"


def make_settings(**overrides: Any) -> Settings:
    """Test settings: no DATABASE_URL / REDIS_URL, so everything is in memory."""
    values: dict[str, Any] = {
        "app_env": "test",
        "log_level": "info",
        "port": 8000,
        "database_url": None,
        "redis_url": None,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    # A fresh app per test: every collaborator (user directory, session
    # store) starts empty, so no state bleeds between tests.
    return create_app(settings)


@pytest.fixture
def container(app: FastAPI) -> Container:
    return app.state.container


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


def register(
    client: TestClient, email: str = TEST_EMAIL, password: str = TEST_PASSWORD
):
    return client.post("/auth/register", json={"email": email, "password": password})


def login(client: TestClient, email: str = TEST_EMAIL, password: str = TEST_PASSWORD):
    return client.post("/auth/login", json={"email": email, "password": password})
