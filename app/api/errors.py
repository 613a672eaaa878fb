"""Translation of failures into HTTP responses.

Every error response has the same body::

    {"message": "<machine_code>", "details": [{"<field>": "<code>, <code>"}]}

``details`` is present only for request validation failures.  Internal
failures say "internal_error" and nothing more; the cause was logged
where it happened.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.models.errors import (
    ConflictError,
    CredentialMismatchError,
    DomainError,
    InternalFailureError,
    NotFoundError,
    PasswordUnchangedError,
    UnauthenticatedError,
)

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A transport-level failure with a fixed status and message code."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def error_response(
    status_code: int, message: str, details: list[dict[str, str]] | None = None
) -> JSONResponse:
    body: dict[str, object] = {"message": message}
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def domain_error_to_response(exc: DomainError) -> JSONResponse:
    if isinstance(exc, ConflictError):
        logger.warning("Conflict error: %s", exc.reason)
        return error_response(status.HTTP_409_CONFLICT, exc.reason)
    if isinstance(exc, NotFoundError):
        return error_response(status.HTTP_404_NOT_FOUND, "not_found_error")
    if isinstance(exc, CredentialMismatchError):
        logger.warning("Authentication error: credentials rejected")
        return error_response(status.HTTP_401_UNAUTHORIZED, "invalid_credentials")
    if isinstance(exc, UnauthenticatedError):
        return error_response(status.HTTP_401_UNAUTHORIZED, "unauthenticated_error")
    if isinstance(exc, PasswordUnchangedError):
        logger.warning("Same password validation error")
        return error_response(status.HTTP_400_BAD_REQUEST, "same_password_error")
    if not isinstance(exc, InternalFailureError):
        logger.error("Unmapped domain error %s", type(exc).__name__)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error")


def _field_message(error: dict) -> str:
    field = str(error["loc"][-1]) if error.get("loc") else "body"
    kind = error.get("type")
    if kind == "value_error":
        # Field validators raise ValueError("<machine_code>")
        return str(error.get("ctx", {}).get("error", f"invalid_{field}"))
    if kind == "missing":
        return f"{field}_required"
    return f"invalid_{field}"


def validation_details(exc: RequestValidationError) -> list[dict[str, str]]:
    grouped: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = error.get("loc") or ("body",)
        field = str(loc[-1])
        grouped.setdefault(field, []).append(_field_message(error))
    return [{field: ", ".join(messages)} for field, messages in grouped.items()]


async def _handle_domain_error(_request: Request, exc: DomainError) -> JSONResponse:
    return domain_error_to_response(exc)


async def _handle_api_error(_request: Request, exc: ApiError) -> JSONResponse:
    return error_response(exc.status_code, exc.message)


async def _handle_validation_error(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    if any(error.get("type") == "json_invalid" for error in exc.errors()):
        logger.debug("JSON parsing error")
        return error_response(status.HTTP_400_BAD_REQUEST, "invalid_json_format")

    details = validation_details(exc)
    logger.debug("Validation errors: %s", details)
    return error_response(status.HTTP_400_BAD_REQUEST, "validation_error", details)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, _handle_domain_error)  # type: ignore[arg-type]
    app.add_exception_handler(ApiError, _handle_api_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
