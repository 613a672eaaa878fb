"""Session middleware: cookie in, Session handle through, cookie out.

On the way in, the session cookie (if any) becomes a Session handle on
request.state.session.  Nothing is loaded yet; the handle reads the
backend only when asked.  On the way out the cookie is set when the
session was written during the request and deleted when it was flushed.
"""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from app.services.session_store import Session, SessionBackend


class SessionMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        *,
        backend: SessionBackend,
        cookie_name: str = "session",
        ttl_seconds: int = 24 * 60 * 60,
        secure: bool = False,
    ) -> None:
        super().__init__(app)
        self._backend = backend
        self._cookie_name = cookie_name
        self._ttl_seconds = ttl_seconds
        self._secure = secure

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        session = Session(
            self._backend,
            request.cookies.get(self._cookie_name) or None,
            ttl_seconds=self._ttl_seconds,
        )
        request.state.session = session

        response = await call_next(request)

        if session.flushed:
            response.delete_cookie(
                self._cookie_name,
                path="/",
                secure=self._secure,
                httponly=True,
                samesite="lax",
            )
        elif session.modified and session.id is not None:
            response.set_cookie(
                key=self._cookie_name,
                value=session.id,
                max_age=self._ttl_seconds,
                path="/",
                secure=self._secure,
                httponly=True,
                samesite="lax",
            )
        return response
