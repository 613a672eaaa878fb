from __future__ import annotations

import secrets
from collections.abc import Iterator
from contextlib import contextmanager

from app.core.metrics import AUTH_OPERATIONS
from app.models.errors import DomainError, NotFoundError
from app.models.user import User
from app.services import password_service
from app.services.users_service import UserService

# Verified against when the email is unknown, so a login for a missing
# account costs the same argon2 work as one with a wrong password.
_DUMMY_HASH = password_service.hash_password(secrets.token_urlsafe(16))


@contextmanager
def _record(operation: str) -> Iterator[None]:
    try:
        yield
    except DomainError as e:
        AUTH_OPERATIONS.labels(operation=operation, outcome=e.code).inc()
        raise
    AUTH_OPERATIONS.labels(operation=operation, outcome="success").inc()


class AuthService:
    """Entry point for the transport layer: register, login, change password.

    Makes no decisions of its own.  UserService and the User entity raise
    the DomainErrors, and they pass through unchanged.  In particular login
    keeps NotFoundError and CredentialMismatchError distinct; whether a
    caller may see the difference is decided at the HTTP boundary.
    """

    def __init__(self, user_service: UserService) -> None:
        self._user_service = user_service

    async def register(self, email: str, password: str) -> User:
        with _record("register"):
            return await self._user_service.register(email, password)

    async def login(self, email: str, password: str) -> User:
        with _record("login"):
            try:
                user = await self._user_service.find_by_email(email)
            except NotFoundError:
                password_service.verify_password(password, _DUMMY_HASH)
                raise
            user.verify_password(password)
            return await self._user_service.upgrade_password_hash(user, password)

    async def change_password(
        self, user_id: str, current_password: str, new_password: str
    ) -> User:
        with _record("change_password"):
            return await self._user_service.change_password(
                user_id, current_password, new_password
            )
