from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware

from app.api.auth import router as auth_router
from app.api.errors import register_exception_handlers
from app.api.health import router as health_router
from app.api.metrics_endpoint import router as metrics_router
from app.container import Container, build_container
from app.core.config import Settings, load_settings
from app.core.logging import setup_logging
from app.db.engine import lifespan_db
from app.db.redis import lifespan_redis
from app.middleware.metrics import MetricsMiddleware
from app.middleware.request_context import RequestContextMiddleware
from app.middleware.session import SessionMiddleware

logger = logging.getLogger(__name__)


def _lifespan(container: Container):
    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
        # Nested so teardown runs in reverse order even if one fails.
        async with lifespan_db(container.database):
            async with lifespan_redis(container.redis):
                yield

    return lifespan


def create_app(settings: Settings | None = None) -> FastAPI:
    if settings is None:
        settings = load_settings()

    # Configure logging before anything else runs.
    setup_logging(settings.log_level, json_format=settings.log_json)

    container = build_container(settings)

    app = FastAPI(
        title="session-auth-service",
        lifespan=_lifespan(container),
        docs_url="/docs" if settings.is_dev else None,
        redoc_url="/redoc" if settings.is_dev else None,
    )
    app.state.container = container

    register_exception_handlers(app)

    # Middleware execution order: last-added runs first (outermost layer).
    # RequestContext → Metrics → GZip → CORS → Session → route handler
    app.add_middleware(
        SessionMiddleware,
        backend=container.session_backend,
        cookie_name=settings.session_cookie_name,
        ttl_seconds=settings.session_ttl_seconds,
        secure=settings.session_cookie_secure,
    )
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_origins),
            allow_credentials=True,  # the session rides in a cookie
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestContextMiddleware)

    app.include_router(metrics_router)
    app.include_router(health_router)
    app.include_router(auth_router)

    logger.info(
        "session-auth-service created  env=%s log_level=%s port=%d docs=%s",
        settings.app_env,
        settings.log_level,
        settings.port,
        "on" if settings.is_dev else "off",
    )
    return app


app = create_app()
