from __future__ import annotations

import asyncio
import dataclasses

import pytest
from argon2 import PasswordHasher
from prometheus_client import REGISTRY

from app.models.errors import (
    ConflictError,
    CredentialMismatchError,
    NotFoundError,
    PasswordUnchangedError,
)
from app.repos.user_repo import InMemoryUserRepo
from app.services import auth_service, password_service
from app.services.auth_service import AuthService
from app.services.users_service import UserService


def _auth_count(operation: str, outcome: str) -> float:
    value = REGISTRY.get_sample_value(
        "auth_operations_total", {"operation": operation, "outcome": outcome}
    )
    return value if value is not None else 0.0


@pytest.fixture
def auth() -> AuthService:
    return AuthService(UserService(InMemoryUserRepo()))


def test_register_then_login(auth: AuthService) -> None:
    created = asyncio.run(auth.register("alice@example.com", "Secur3Pass!"))
    logged_in = asyncio.run(auth.login("alice@example.com", "Secur3Pass!"))
    assert logged_in == created


def test_login_normalizes_email(auth: AuthService) -> None:
    created = asyncio.run(auth.register("A@Example.com", "Secur3Pass!"))
    assert asyncio.run(auth.login("a@EXAMPLE.com", "Secur3Pass!")).id == created.id


def test_login_wrong_password_is_credential_mismatch(auth: AuthService) -> None:
    asyncio.run(auth.register("alice@example.com", "Secur3Pass!"))
    with pytest.raises(CredentialMismatchError):
        asyncio.run(auth.login("alice@example.com", "wrong-pass"))


def test_login_unknown_email_is_not_found(auth: AuthService) -> None:
    # Kept distinct here; the HTTP layer answers both cases with 401.
    with pytest.raises(NotFoundError):
        asyncio.run(auth.login("nobody@example.com", "Secur3Pass!"))


def test_register_duplicate_is_conflict(auth: AuthService) -> None:
    asyncio.run(auth.register("alice@example.com", "Secur3Pass!"))
    with pytest.raises(ConflictError):
        asyncio.run(auth.register("alice@example.com", "Secur3Pass!"))


def test_change_password_delegates(auth: AuthService) -> None:
    user = asyncio.run(auth.register("alice@example.com", "oldpass-1"))
    with pytest.raises(PasswordUnchangedError):
        asyncio.run(auth.change_password(user.id, "oldpass-1", "oldpass-1"))

    asyncio.run(auth.change_password(user.id, "oldpass-1", "newpass-1"))
    asyncio.run(auth.login("alice@example.com", "newpass-1"))
    with pytest.raises(CredentialMismatchError):
        asyncio.run(auth.login("alice@example.com", "oldpass-1"))


# ---- metrics ----


def test_successful_login_is_counted(auth: AuthService) -> None:
    asyncio.run(auth.register("alice@example.com", "Secur3Pass!"))
    before = _auth_count("login", "success")
    asyncio.run(auth.login("alice@example.com", "Secur3Pass!"))
    assert _auth_count("login", "success") - before == 1


def test_failed_login_is_counted_by_code(auth: AuthService) -> None:
    asyncio.run(auth.register("alice@example.com", "Secur3Pass!"))
    before = _auth_count("login", CredentialMismatchError.code)
    with pytest.raises(CredentialMismatchError):
        asyncio.run(auth.login("alice@example.com", "wrong-pass"))
    assert _auth_count("login", CredentialMismatchError.code) - before == 1


def test_conflict_is_counted(auth: AuthService) -> None:
    asyncio.run(auth.register("alice@example.com", "Secur3Pass!"))
    before = _auth_count("register", ConflictError.code)
    with pytest.raises(ConflictError):
        asyncio.run(auth.register("alice@example.com", "Secur3Pass!"))
    assert _auth_count("register", ConflictError.code) - before == 1


# ---- login timing and hash upgrades ----


def _count_verifies(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    hashes: list[str] = []
    real_verify = password_service.verify_password

    def _counting(plain: str, password_hash: str) -> bool:
        hashes.append(password_hash)
        return real_verify(plain, password_hash)

    monkeypatch.setattr(password_service, "verify_password", _counting)
    return hashes


def test_unknown_email_still_pays_for_a_verify(
    auth: AuthService, monkeypatch: pytest.MonkeyPatch
) -> None:
    hashes = _count_verifies(monkeypatch)
    with pytest.raises(NotFoundError):
        asyncio.run(auth.login("nobody@example.com", "Secur3Pass!"))
    assert hashes == [auth_service._DUMMY_HASH]


def test_unknown_email_and_wrong_password_verify_equally(
    auth: AuthService, monkeypatch: pytest.MonkeyPatch
) -> None:
    asyncio.run(auth.register("alice@example.com", "Secur3Pass!"))
    hashes = _count_verifies(monkeypatch)

    with pytest.raises(NotFoundError):
        asyncio.run(auth.login("nobody@example.com", "wrong-pass"))
    with pytest.raises(CredentialMismatchError):
        asyncio.run(auth.login("alice@example.com", "wrong-pass"))
    assert len(hashes) == 2


def test_login_upgrades_outdated_hash() -> None:
    repo = InMemoryUserRepo()
    auth = AuthService(UserService(repo))
    user = asyncio.run(auth.register("alice@example.com", "Secur3Pass!"))

    weak = PasswordHasher(time_cost=1, memory_cost=8, parallelism=1)
    outdated = dataclasses.replace(user, password=weak.hash("Secur3Pass!"))
    asyncio.run(repo.update(outdated))

    logged_in = asyncio.run(auth.login("alice@example.com", "Secur3Pass!"))
    stored = asyncio.run(repo.find_by_id(user.id))
    assert stored is not None
    assert stored.password != outdated.password
    assert logged_in == stored
    assert not password_service.needs_rehash(stored.password)
    stored.verify_password("Secur3Pass!")


def test_login_succeeds_when_storing_upgraded_hash_fails(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    repo = InMemoryUserRepo()
    auth = AuthService(UserService(repo))
    created = asyncio.run(auth.register("alice@example.com", "Secur3Pass!"))

    async def _failing_update(user):
        raise ConnectionError("connection refused")

    monkeypatch.setattr(password_service, "needs_rehash", lambda _hash: True)
    monkeypatch.setattr(repo, "update", _failing_update)

    logged_in = asyncio.run(auth.login("alice@example.com", "Secur3Pass!"))
    assert logged_in == created
