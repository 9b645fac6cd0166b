"""API middleware: CORS, request identity, request logging and error handling.

# ─── MIDDLEWARE EXECUTION ORDER ────────────────────────────────────────
#
# Starlette middleware is a stack (last added, first executed):
#
#   In main.py:
#     app.add_middleware(AuthContextMiddleware)     # added 1st → innermost
#     app.add_middleware(ErrorHandlingMiddleware)
#     app.add_middleware(RequestLoggingMiddleware)  # added 3rd
#     configure_cors(app, ...)                      # added last → outermost
#
#   Request flow:
#     Client → CORS → RequestLogging → ErrorHandling → AuthContext → route
#
# AuthContextMiddleware only *resolves* identity; it never rejects.  Routes
# that need a caller declare ``AuthDep`` / ``AdminDep`` (api/dependencies.py),
# which raise 401 / 403.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from saraswathi.api.schemas import ErrorResponse
from saraswathi.models.user import AuthContext, UserRole
from saraswathi.utils.errors import AuthenticationError, CatalogError
from saraswathi.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

_BEARER_PREFIX = "Bearer "


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    Parameters
    ----------
    app:
        The FastAPI application instance.
    allowed_origins:
        Explicit list of allowed origins, normally the frontend URL.
        Defaults to ``["*"]`` for development.
    """
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


class AuthContextMiddleware(BaseHTTPMiddleware):
    """Attach an :class:`AuthContext` to ``request.state.auth``.

    Resolution order:

    1. ``Authorization: Bearer <jwt>`` verified by ``app.state.auth_service``.
    2. Legacy ``X-User-Email`` / ``X-User-Role`` headers (role defaults to user).
    3. Anonymous context.

    An invalid token is logged and resolution falls through to step 2.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request.state.auth = self._resolve(request)
        return await call_next(request)

    @staticmethod
    def _resolve(request: Request) -> AuthContext:
        header = request.headers.get("authorization", "")
        auth_service = getattr(request.app.state, "auth_service", None)

        if header.startswith(_BEARER_PREFIX) and auth_service is not None:
            token = header[len(_BEARER_PREFIX):].strip()
            try:
                return auth_service.decode_token(token)
            except AuthenticationError as exc:
                _logger.warning(
                    "jwt_verification_failed",
                    path=str(request.url.path),
                    error=exc.message,
                )

        email = request.headers.get("x-user-email", "").strip()
        if email:
            role = request.headers.get("x-user-role", "").strip() or UserRole.USER.value
            return AuthContext(email=email, role=role)

        return AuthContext()


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch ``CatalogError`` subclasses and return structured JSON errors.

    The client sees only the exception class name and message; provider
    details stay in the server log.  Other exceptions fall through to
    FastAPI's default 500 handler.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except CatalogError as exc:
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
            )
            body = ErrorResponse(
                error=type(exc).__name__,
                detail=exc.message,
            )
            return JSONResponse(
                status_code=500,
                content=body.model_dump(),
            )
