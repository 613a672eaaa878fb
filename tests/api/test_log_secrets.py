"""Assert that passwords and session ids never appear in log output.

These tests exercise endpoints that handle sensitive data and verify
the log records contain no leaked secrets.
"""

from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from conftest import TEST_PASSWORD, login, register


def _log_text(caplog: pytest.LogCaptureFixture) -> str:
    return " ".join(caplog.messages)


def test_register_does_not_log_password(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.DEBUG):
        register(client)
    assert TEST_PASSWORD not in _log_text(caplog), "Password found in log output!"


def test_failed_login_does_not_log_password(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    register(client)
    client.cookies.clear()
    with caplog.at_level(logging.DEBUG):
        login(client, password="wrong-" + TEST_PASSWORD)
    assert TEST_PASSWORD not in _log_text(caplog), "Password found in log output!"


def test_successful_login_does_not_log_password_or_session_id(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    register(client)
    client.cookies.clear()
    with caplog.at_level(logging.DEBUG):
        login(client)
    session_id = client.cookies.get("session")
    assert session_id
    text = _log_text(caplog)
    assert TEST_PASSWORD not in text, "Password found in log output!"
    assert session_id not in text, "Session id found in log output!"


def test_change_password_does_not_log_either_password(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    register(client)
    new_password = "n3w-s3cret-value"
    with caplog.at_level(logging.DEBUG):
        client.post(
            "/auth/change-password",
            json={"current_password": TEST_PASSWORD, "new_password": new_password},
        )
        client.post(
            "/auth/change-password",
            json={"current_password": TEST_PASSWORD, "new_password": "x"},
        )
    text = _log_text(caplog)
    assert TEST_PASSWORD not in text
    assert new_password not in text
