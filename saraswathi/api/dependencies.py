"""Dependency injection helpers: resolve singletons and the caller from request state.

Each helper reads one component from ``app.state`` (populated at startup
by ``_build_all`` in main.py) and is exposed as an ``Annotated`` alias, so
a route declares ``catalog: CatalogDep`` and FastAPI does the lookup.
Tests build a bare FastAPI app and assign mocks to ``app.state`` directly.

The auth gates (``require_auth`` / ``require_admin``) are dependencies as
well.  They read the identity that ``AuthContextMiddleware`` resolved.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request

from saraswathi.config.loader import DEFAULT_CONFIG
from saraswathi.interfaces.catalog_provider import ICatalogProvider
from saraswathi.interfaces.user_provider import IUserProvider
from saraswathi.models.user import AuthContext
from saraswathi.pipeline.orchestrator import ManuscriptPipeline
from saraswathi.services.analysis_service import ManuscriptAnalyzer
from saraswathi.services.auth_service import AuthService
from saraswathi.services.ocr_service import OCRService


def _get_catalog(request: Request) -> ICatalogProvider:
    return request.app.state.catalog


def _get_user_provider(request: Request) -> IUserProvider:
    return request.app.state.user_provider


def _get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def _get_pipeline(request: Request) -> ManuscriptPipeline:
    return request.app.state.pipeline


def _get_ocr_service(request: Request) -> OCRService:
    return request.app.state.ocr_service


def _get_analyzer(request: Request) -> ManuscriptAnalyzer:
    return request.app.state.analyzer


def _get_upload_config(request: Request) -> dict[str, Any]:
    """Upload limits from config.yaml, or the built-in defaults."""
    return getattr(request.app.state, "upload_config", None) or DEFAULT_CONFIG["uploads"]


def _get_provider_status(request: Request) -> dict[str, Any]:
    return getattr(request.app.state, "provider_status", None) or {}


CatalogDep = Annotated[ICatalogProvider, Depends(_get_catalog)]
UserProviderDep = Annotated[IUserProvider, Depends(_get_user_provider)]
AuthServiceDep = Annotated[AuthService, Depends(_get_auth_service)]
PipelineDep = Annotated[ManuscriptPipeline, Depends(_get_pipeline)]
OCRServiceDep = Annotated[OCRService, Depends(_get_ocr_service)]
AnalyzerDep = Annotated[ManuscriptAnalyzer, Depends(_get_analyzer)]
UploadConfigDep = Annotated[dict[str, Any], Depends(_get_upload_config)]
ProviderStatusDep = Annotated[dict[str, Any], Depends(_get_provider_status)]


# ---------------------------------------------------------------------------
# Auth gates
# ---------------------------------------------------------------------------


def get_auth_context(request: Request) -> AuthContext:
    """Identity resolved by ``AuthContextMiddleware``; anonymous if it did not run."""
    return getattr(request.state, "auth", None) or AuthContext()


def require_auth(request: Request) -> AuthContext:
    """Reject with 401 unless the caller has a JWT identity or a legacy email header."""
    auth = get_auth_context(request)
    if not auth.is_authenticated:
        raise HTTPException(status_code=401, detail="Authentication required")
    return auth


def require_admin(request: Request) -> AuthContext:
    auth = get_auth_context(request)
    if not auth.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return auth


def require_user_id(auth: AuthContext) -> str:
    """Routes that write records keyed by account need a verified JWT, not a header."""
    if not auth.user_id:
        raise HTTPException(status_code=401, detail="User ID required")
    return auth.user_id


AuthContextDep = Annotated[AuthContext, Depends(get_auth_context)]
AuthDep = Annotated[AuthContext, Depends(require_auth)]
AdminDep = Annotated[AuthContext, Depends(require_admin)]
