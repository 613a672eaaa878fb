"""PostgreSQL implementation of UserRepo."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.tables import UserRow
from app.models.errors import DuplicateEmailError
from app.models.user import User


class PgUserRepo:
    """Satisfies the UserRepo Protocol using PostgreSQL via SQLAlchemy.

    Holds the shared session factory, not a session: every call opens its
    own short transaction, and the ``async with`` blocks return the
    connection to the pool on success, domain failure, and error alike.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_by_email(self, email: str) -> User | None:
        async with self._session_factory() as session:
            stmt = select(UserRow).where(UserRow.email == email)
            row = (await session.execute(stmt)).scalar_one_or_none()
            return None if row is None else _row_to_user(row)

    async def find_by_id(self, user_id: str) -> User | None:
        async with self._session_factory() as session:
            row = await session.get(UserRow, user_id)
            return None if row is None else _row_to_user(row)

    async def insert(self, user: User) -> User:
        row = UserRow(
            id=user.id,
            email=user.email,
            password=user.password,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
        try:
            async with self._session_factory() as session, session.begin():
                session.add(row)
                await session.flush()
        except IntegrityError as e:
            # users.email unique index: a concurrent register won the race
            raise DuplicateEmailError(user.email) from e
        return _row_to_user(row)

    async def update(self, user: User) -> User:
        async with self._session_factory() as session, session.begin():
            row = await session.get(UserRow, user.id)
            if row is None:
                raise KeyError("user not found")
            row.email = user.email
            row.password = user.password
            row.updated_at = user.updated_at
            await session.flush()
            return _row_to_user(row)


def _row_to_user(row: UserRow) -> User:
    return User(
        id=row.id,
        email=row.email,
        password=row.password,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
