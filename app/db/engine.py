"""Async SQLAlchemy engine and session factory.

build_database() is called once by the composition root when
DATABASE_URL is configured.  The engine owns the asyncpg connection pool;
PgUserRepo borrows sessions from the factory per operation.  Without a
DATABASE_URL nothing here is created and the in-memory directory is used.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all table models."""


@dataclass(frozen=True)
class Database:
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]


def build_database(database_url: str, *, echo: bool = False) -> Database:
    engine = create_async_engine(
        database_url,
        echo=echo,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
    )
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,  # rows stay readable after commit for mapping
    )
    return Database(engine=engine, session_factory=session_factory)


async def ping_database(database: Database) -> None:
    async with database.engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


@asynccontextmanager
async def lifespan_db(database: Database | None) -> AsyncIterator[None]:
    """Startup/shutdown hook for the database engine."""
    if database is None:
        logger.info("No DATABASE_URL configured: using in-memory user directory")
        yield
        return

    logger.info("Database engine created: %s", database.engine.url)
    try:
        yield
    finally:
        await database.engine.dispose()
        logger.info("Database engine disposed")
