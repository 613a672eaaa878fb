from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Request, status

from app.api.errors import ApiError
from app.container import Container
from app.models.user import UserProfile
from app.services import session_identity
from app.services.auth_service import AuthService
from app.services.session_store import Session

logger = logging.getLogger(__name__)


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_auth_service(
    container: Annotated[Container, Depends(get_container)],
) -> AuthService:
    return container.auth_service


def get_session(request: Request) -> Session | None:
    """The Session handle SessionMiddleware attached, if any."""
    return getattr(request.state, "session", None)


def require_session(
    session: Annotated[Session | None, Depends(get_session)],
) -> Session:
    """For endpoints that write to the session (register, login, logout)."""
    if session is None:
        logger.error("No session handle on request; is SessionMiddleware installed?")
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error")
    return session


async def require_user(
    session: Annotated[Session | None, Depends(get_session)],
) -> UserProfile:
    """Resolve the authenticated user from the session, or 401.

    Used as a FastAPI dependency on any protected endpoint.
    """
    profile = await session_identity.authenticate_from_session(session)
    logger.debug("Session validated for user=%s", profile.id)
    return profile
