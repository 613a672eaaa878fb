"""Composition root.

build_container() is the single place collaborators are constructed.  It
picks the concrete backends from Settings (PostgreSQL or in-memory user
directory, Redis or in-memory sessions) and hands the services their
dependencies.  The resulting Container is frozen: nothing swaps a handle
after startup.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import redis.asyncio as aioredis

from app.core.config import Settings
from app.db.engine import Database, build_database
from app.db.redis import build_redis
from app.repos.pg_user_repo import PgUserRepo
from app.repos.user_repo import InMemoryUserRepo, UserRepo
from app.services.auth_service import AuthService
from app.services.session_store import (
    InMemorySessionBackend,
    RedisSessionBackend,
    SessionBackend,
)
from app.services.users_service import UserService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    settings: Settings
    user_repo: UserRepo
    session_backend: SessionBackend
    user_service: UserService
    auth_service: AuthService
    database: Database | None = None
    redis: aioredis.Redis | None = None  # type: ignore[type-arg]


def build_container(settings: Settings) -> Container:
    database: Database | None = None
    user_repo: UserRepo
    if settings.database_url:
        database = build_database(settings.database_url, echo=settings.is_dev)
        user_repo = PgUserRepo(database.session_factory)
    else:
        user_repo = InMemoryUserRepo()

    redis_client = None
    session_backend: SessionBackend
    if settings.redis_url:
        redis_client = build_redis(settings.redis_url)
        session_backend = RedisSessionBackend(redis_client)
    else:
        session_backend = InMemorySessionBackend()

    user_service = UserService(user_repo)
    auth_service = AuthService(user_service)

    logger.debug(
        "Container built  user_repo=%s session_backend=%s",
        type(user_repo).__name__,
        type(session_backend).__name__,
    )
    return Container(
        settings=settings,
        user_repo=user_repo,
        session_backend=session_backend,
        user_service=user_service,
        auth_service=auth_service,
        database=database,
        redis=redis_client,
    )
