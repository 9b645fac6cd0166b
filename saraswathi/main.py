"""Saraswathi FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, and serves locally stored images under ``/media`` when
ImageKit is not configured.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from saraswathi.api.auth_routes import router as auth_router
from saraswathi.api.middleware import (
    AuthContextMiddleware,
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from saraswathi.api.routes import router as api_router
from saraswathi.config.loader import load_config
from saraswathi.config.settings import Settings
from saraswathi.interfaces.image_storage_provider import IImageStorageProvider
from saraswathi.interfaces.llm_provider import ILLMProvider
from saraswathi.interfaces.ocr_provider import IOCRProvider
from saraswathi.pipeline.orchestrator import ManuscriptPipeline
from saraswathi.providers.catalog.sqlite_catalog_provider import SQLiteCatalogProvider
from saraswathi.providers.llm.anthropic_provider import AnthropicLLMProvider
from saraswathi.providers.llm.gemini_provider import GeminiLLMProvider
from saraswathi.providers.llm.openai_provider import OpenAILLMProvider
from saraswathi.providers.ocr.google_vision_provider import GoogleVisionOCRProvider
from saraswathi.providers.ocr.tesseract_provider import TesseractOCRProvider
from saraswathi.providers.storage.imagekit_provider import ImageKitStorageProvider
from saraswathi.providers.storage.local_storage_provider import LocalImageStorageProvider
from saraswathi.providers.users.sqlite_user_provider import SQLiteUserProvider
from saraswathi.services.analysis_service import ManuscriptAnalyzer
from saraswathi.services.auth_service import AuthService
from saraswathi.services.image_service import ImageService
from saraswathi.services.ocr_service import OCRService
from saraswathi.utils.errors import ConfigurationError
from saraswathi.utils.logging import configure_logging, get_logger

_VERSION = "0.1.0"

_LLM_PROVIDERS: dict[str, type[ILLMProvider]] = {
    "gemini": GeminiLLMProvider,
    "openai": OpenAILLMProvider,
    "anthropic": AnthropicLLMProvider,
}

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_llm_provider(app_settings: Settings) -> ILLMProvider | None:
    """Select the first LLM provider with an API key.

    Priority order: Gemini -> OpenAI -> Anthropic.  ``None`` means the
    analyzer runs in fallback mode and every analysis is "pending".
    """
    available = app_settings.get_available_llm_providers()
    if not available:
        return None
    return _LLM_PROVIDERS[available[0]](settings=app_settings)


def _build_storage_provider(app_settings: Settings) -> IImageStorageProvider:
    """ImageKit when all three keys are set, otherwise the local media directory."""
    if app_settings.is_imagekit_configured():
        return ImageKitStorageProvider(settings=app_settings)
    return LocalImageStorageProvider(
        media_dir=app_settings.local_media_dir,
        media_url=app_settings.local_media_url,
    )


def _build_ocr_providers(app_settings: Settings, priority: list[str]) -> list[IOCRProvider]:
    """OCR providers in ``ocr.provider_priority`` order, skipping unconfigured ones."""
    candidates: dict[str, IOCRProvider] = {"tesseract": TesseractOCRProvider()}
    if app_settings.is_vision_configured():
        candidates["google_vision"] = GoogleVisionOCRProvider(settings=app_settings)
    return [candidates[name] for name in priority if name in candidates]


def _check_production_settings(app_settings: Settings) -> None:
    """Refuse to sign tokens with the shipped placeholder secret in production."""
    if app_settings.app_env != "production":
        return
    if app_settings.jwt_secret == Settings.model_fields["jwt_secret"].default:
        raise ConfigurationError("JWT_SECRET must be set when APP_ENV=production")


# ---------------------------------------------------------------------------
# Full DI assembly for the FastAPI application
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings, app_config: dict[str, Any]) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    images_cfg = app_config.get("images", {})
    ocr_cfg = app_config.get("ocr", {})
    analysis_cfg = app_config.get("analysis", {})
    pipeline_cfg = app_config.get("pipeline", {})

    # -- Persistence --
    catalog = SQLiteCatalogProvider(db_path=app_settings.catalog_db_path)
    user_provider = SQLiteUserProvider(db_path=app_settings.catalog_db_path)
    auth_service = AuthService(
        users=user_provider,
        secret=app_settings.jwt_secret,
        expiry_days=app_settings.jwt_expiry_days,
    )

    # -- External services --
    storage = _build_storage_provider(app_settings)
    llm = _build_llm_provider(app_settings)
    ocr_providers = _build_ocr_providers(
        app_settings, ocr_cfg.get("provider_priority", ["google_vision", "tesseract"])
    )

    # -- Services --
    image_service = ImageService(
        storage=storage,
        optimized_width=images_cfg.get("optimized_width", 1600),
        optimized_quality=images_cfg.get("optimized_quality", 82),
        thumbnail_width=images_cfg.get("thumbnail_width", 400),
        thumbnail_quality=images_cfg.get("thumbnail_quality", 70),
        folder=images_cfg.get("folder", "manuscripts"),
        pdf_render_dpi=images_cfg.get("pdf_render_dpi", 150),
    )
    ocr_service = OCRService(
        providers=ocr_providers,
        min_confidence=ocr_cfg.get("min_confidence", 0.5),
    )
    analyzer = ManuscriptAnalyzer(
        llm_provider=llm,
        ocr_prompt_chars=analysis_cfg.get("ocr_prompt_chars", 2000),
        max_keywords=analysis_cfg.get("max_keywords", 10),
        max_highlights=analysis_cfg.get("max_highlights", 10),
    )

    # -- Pipeline --
    pipeline = ManuscriptPipeline(
        catalog=catalog,
        image_service=image_service,
        ocr_service=ocr_service,
        analyzer=analyzer,
        max_concurrent_jobs=pipeline_cfg.get("max_concurrent_jobs", 2),
    )

    provider_status = {
        "ocr": ocr_service.get_available_providers(),
        "llm": llm.get_provider_name() if llm is not None else None,
        "storage": storage.get_provider_name(),
        "catalog": catalog.get_provider_name(),
    }

    return {
        "catalog": catalog,
        "user_provider": user_provider,
        "auth_service": auth_service,
        "storage": storage,
        "llm": llm,
        "image_service": image_service,
        "ocr_service": ocr_service,
        "analyzer": analyzer,
        "pipeline": pipeline,
        "upload_config": app_config.get("uploads", {}),
        "provider_status": provider_status,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Create the database tables on startup; let background jobs finish on shutdown."""
    await application.state.catalog.initialize()
    await application.state.user_provider.initialize()

    _logger.info(
        "app_startup",
        version=_VERSION,
        environment=settings.app_env,
        providers=application.state.provider_status,
    )

    yield

    pipeline: ManuscriptPipeline = application.state.pipeline
    if pipeline.pending_jobs:
        _logger.info("app_shutdown_draining", pending_jobs=pipeline.pending_jobs)
    await pipeline.drain()
    _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(
    app_settings: Settings | None = None,
    app_config: dict[str, Any] | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application."""
    app_settings = app_settings or settings
    _check_production_settings(app_settings)
    app_config = app_config if app_config is not None else config

    application = FastAPI(
        title="Saraswathi API",
        version=_VERSION,
        description=(
            "Catalogue historical manuscripts: upload scans, extract text with OCR, "
            "enrich records with AI analysis, then browse, search and annotate."
        ),
        lifespan=_lifespan,
    )

    # Components are built eagerly so the state is populated before the
    # lifespan runs; the lifespan only does the async initialisation.
    for key, value in _build_all(app_settings, app_config).items():
        setattr(application.state, key, value)

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(AuthContextMiddleware)
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=[app_settings.frontend_url])

    # -- API routes --
    application.include_router(api_router)
    application.include_router(auth_router)

    # -- Locally stored images --
    storage = application.state.storage
    if isinstance(storage, LocalImageStorageProvider):
        media_dir = Path(storage.media_dir)
        media_dir.mkdir(parents=True, exist_ok=True)
        application.mount(
            app_settings.local_media_url,
            StaticFiles(directory=str(media_dir)),
            name="media",
        )

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "saraswathi.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
