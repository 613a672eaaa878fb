"""Redis connection management.

Redis holds the server-side session state.  Sessions are small, read on
every authenticated request, and expire on inactivity, which is the shape
Redis handles well: sub-millisecond reads and per-key TTLs with no
cleanup job.  User records stay in PostgreSQL.

build_redis() is called once by the composition root when REDIS_URL is
configured; without it sessions live in process memory.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)


def build_redis(redis_url: str) -> aioredis.Redis:  # type: ignore[type-arg]
    return aioredis.from_url(
        redis_url,
        decode_responses=True,  # session payloads are JSON text
        max_connections=20,
    )


@asynccontextmanager
async def lifespan_redis(client: aioredis.Redis | None) -> AsyncIterator[None]:  # type: ignore[type-arg]
    """Startup/shutdown hook for Redis, mirroring lifespan_db()."""
    if client is None:
        logger.info("No REDIS_URL configured: sessions are kept in memory")
        yield
        return

    # Verify connectivity on startup but keep serving if it fails: /ready
    # reports the outage and requests touching sessions fail with a 500.
    try:
        await client.ping()  # type: ignore[misc]
        logger.info("Redis connected")
    except Exception:
        logger.exception("Redis connection failed on startup")

    try:
        yield
    finally:
        await client.aclose()
        logger.info("Redis connection pool closed")
