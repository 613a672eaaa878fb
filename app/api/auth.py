"""JSON auth endpoints backed by a server-side session.

POST /auth/register         create an account and start a session
POST /auth/login            verify credentials and start a session
POST /auth/logout           end the session
GET  /auth/profile          identity of the current session
POST /auth/change-password  rotate the current user's password

Register and login answer with { id, email } and set the session cookie
(SessionMiddleware writes it once the session has been modified).
"""

from __future__ import annotations

import logging
import re
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import AfterValidator, BaseModel

from app.api.dependencies import get_auth_service, require_session, require_user
from app.api.errors import ApiError
from app.models.errors import (
    CredentialMismatchError,
    InternalFailureError,
    NotFoundError,
)
from app.models.user import User, UserProfile
from app.services import session_identity
from app.services.auth_service import AuthService
from app.services.session_store import Session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8


def _check_email(value: str) -> str:
    if not _EMAIL_RE.match(value.strip()):
        raise ValueError("invalid_email_format")
    return value


def _check_new_password(value: str) -> str:
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValueError("password_must_be_at_least_8_characters")
    return value


def _required(code: str):
    def _check(value: str) -> str:
        if not value:
            raise ValueError(code)
        return value

    return _check


# --- Request / Response schemas -------------------------------------------

EmailIn = Annotated[str, AfterValidator(_check_email)]
NewPasswordIn = Annotated[str, AfterValidator(_check_new_password)]


class RegisterIn(BaseModel):
    email: EmailIn
    password: NewPasswordIn


class LoginIn(BaseModel):
    email: EmailIn
    password: Annotated[str, AfterValidator(_required("password_required"))]


class ChangePasswordIn(BaseModel):
    current_password: Annotated[
        str, AfterValidator(_required("current_password_required"))
    ]
    new_password: NewPasswordIn


class AuthResponse(BaseModel):
    id: str
    email: str


async def _start_session(session: Session, user: User) -> None:
    try:
        await session_identity.write_identity(session, user)
    except InternalFailureError:
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "failed_to_create_session_error"
        ) from None


# --- POST /auth/register --------------------------------------------------


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    payload: RegisterIn,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
    session: Annotated[Session, Depends(require_session)],
) -> AuthResponse:
    user = await auth_service.register(payload.email, payload.password)
    await _start_session(session, user)
    logger.info("User registered  user_id=%s email=%s", user.id, user.email)
    return AuthResponse(id=user.id, email=user.email)


# --- POST /auth/login -----------------------------------------------------


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginIn,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
    session: Annotated[Session, Depends(require_session)],
) -> AuthResponse:
    try:
        user = await auth_service.login(payload.email, payload.password)
    except NotFoundError:
        # Unknown email answers exactly like a wrong password, so the
        # endpoint cannot be used to enumerate which emails have accounts.
        logger.warning("Login failed: unknown email")
        raise CredentialMismatchError() from None
    except CredentialMismatchError:
        logger.warning("Login failed: wrong password")
        raise

    await _start_session(session, user)
    logger.info("Login succeeded  user_id=%s", user.id)
    return AuthResponse(id=user.id, email=user.email)


# --- POST /auth/logout ----------------------------------------------------


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    session: Annotated[Session, Depends(require_session)],
) -> Response:
    """End the session server-side; the cookie is cleared on the way out.

    Idempotent: logging out without a session also answers 204.
    """
    try:
        await session_identity.logout(session)
    except InternalFailureError:
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "failed_to_logout_error"
        ) from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- GET /auth/profile ----------------------------------------------------


@router.get("/profile", response_model=AuthResponse)
async def profile(
    current_user: Annotated[UserProfile, Depends(require_user)],
) -> AuthResponse:
    return AuthResponse(id=current_user.id, email=current_user.email)


# --- POST /auth/change-password -------------------------------------------


@router.post("/change-password", response_model=AuthResponse)
async def change_password(
    payload: ChangePasswordIn,
    current_user: Annotated[UserProfile, Depends(require_user)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    user = await auth_service.change_password(
        current_user.id, payload.current_password, payload.new_password
    )
    return AuthResponse(id=user.id, email=user.email)
