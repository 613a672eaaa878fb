"""Health and readiness endpoints.

/health (liveness): answers 200 whenever the process can respond; the
  body reports each backing store as ok / down / not_configured and the
  overall status as "ok" or "degraded".  A degraded store is not a reason
  to restart the process.

/ready (readiness): 503 while a configured store is unreachable, so the
  load balancer stops routing here until it recovers.  PostgreSQL holds
  the accounts and Redis holds the sessions; neither has a fallback once
  configured, so both are critical.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from app.api.dependencies import get_container
from app.container import Container
from app.db.engine import ping_database

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _check_dependencies(container: Container) -> dict[str, str]:
    checks: dict[str, str] = {}

    if container.database is not None:
        try:
            await ping_database(container.database)
            checks["database"] = "ok"
        except Exception:
            logger.warning("Database health check failed", exc_info=True)
            checks["database"] = "down"
    else:
        checks["database"] = "not_configured"

    if container.redis is not None:
        try:
            await container.redis.ping()  # type: ignore[misc]
            checks["redis"] = "ok"
        except Exception:
            logger.warning("Redis health check failed", exc_info=True)
            checks["redis"] = "down"
    else:
        checks["redis"] = "not_configured"

    return checks


@router.get("/health")
async def health(container: Annotated[Container, Depends(get_container)]) -> dict:
    """Liveness probe plus per-dependency status."""
    checks = await _check_dependencies(container)
    overall = "degraded" if "down" in checks.values() else "ok"
    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready(container: Annotated[Container, Depends(get_container)]) -> Response:
    """Readiness probe: 200 if every configured store answers, else 503."""
    checks = await _check_dependencies(container)
    if "down" in checks.values():
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)
