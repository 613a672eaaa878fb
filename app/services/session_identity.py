"""Binding between a request's session and a verified user.

After a successful register or login the transport layer calls
write_identity(); from then on authenticate_from_session() turns the
session back into a trusted UserProfile.  Only the projection (id, email)
is stored: the password hash never enters the session.
"""

from __future__ import annotations

import logging

from app.models.errors import (
    InternalFailureError,
    SessionStoreError,
    UnauthenticatedError,
)
from app.models.user import User, UserProfile
from app.services.session_store import Session

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user"


async def write_identity(session: Session, user: User) -> UserProfile:
    profile = UserProfile.from_user(user)
    try:
        await session.cycle_id()
        await session.set(SESSION_USER_KEY, profile.to_dict())
    except SessionStoreError:
        logger.exception("Failed to write session identity  user_id=%s", user.id)
        raise InternalFailureError() from None
    return profile


async def authenticate_from_session(session: Session | None) -> UserProfile:
    if session is None:
        raise UnauthenticatedError()

    try:
        stored = await session.get(SESSION_USER_KEY)
    except SessionStoreError:
        logger.exception("Failed to read session identity")
        raise InternalFailureError() from None

    if stored is None:
        raise UnauthenticatedError()

    try:
        return UserProfile.from_dict(stored)
    except (AttributeError, ValueError):
        # Not something write_identity() produced: never trust it
        logger.warning("Discarding malformed session identity")
        raise UnauthenticatedError() from None


async def logout(session: Session) -> None:
    try:
        await session.flush()
    except SessionStoreError:
        logger.exception("Failed to flush session")
        raise InternalFailureError() from None
