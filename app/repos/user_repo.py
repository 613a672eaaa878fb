from __future__ import annotations

from typing import Protocol

from app.models.errors import DuplicateEmailError
from app.models.user import User


class UserRepo(Protocol):
    """User directory.  Emails are looked up exactly as given; callers normalize."""

    async def find_by_email(self, email: str) -> User | None: ...
    async def find_by_id(self, user_id: str) -> User | None: ...
    async def insert(self, user: User) -> User: ...
    async def update(self, user: User) -> User: ...


class InMemoryUserRepo:
    """Dict-backed directory for local dev and tests (no DATABASE_URL)."""

    def __init__(self) -> None:
        self._by_email: dict[str, User] = {}
        self._by_id: dict[str, User] = {}

    async def find_by_email(self, email: str) -> User | None:
        return self._by_email.get(email)

    async def find_by_id(self, user_id: str) -> User | None:
        return self._by_id.get(user_id)

    async def insert(self, user: User) -> User:
        # Stands in for the unique index on users.email
        if user.email in self._by_email:
            raise DuplicateEmailError(user.email)
        self._by_email[user.email] = user
        self._by_id[user.id] = user
        return user

    async def update(self, user: User) -> User:
        current = self._by_id.get(user.id)
        if current is None:
            raise KeyError("user not found")
        if current.email != user.email:
            if user.email in self._by_email:
                raise DuplicateEmailError(user.email)
            del self._by_email[current.email]

        self._by_id[user.id] = user
        self._by_email[user.email] = user
        return user
