"""Saraswathi API layer: routes, schemas, dependencies and middleware."""

from saraswathi.api.auth_routes import router as auth_router
from saraswathi.api.middleware import (
    AuthContextMiddleware,
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from saraswathi.api.routes import router
from saraswathi.api.schemas import ErrorResponse, HealthResponse, UploadResponse

__all__ = [
    "AuthContextMiddleware",
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "auth_router",
    "router",
    "ErrorResponse",
    "HealthResponse",
    "UploadResponse",
]
