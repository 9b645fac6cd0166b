"""Unit tests for factory functions in saraswathi/main.py.

Covers LLM/storage/OCR provider selection, the ``_build_all`` assembly and
the ``create_app`` factory, with every external service left unconfigured
so no network calls or API keys are needed.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from saraswathi.config.loader import DEFAULT_CONFIG
from saraswathi.config.settings import Settings


# ======================================================================
# Shared helpers
# ======================================================================


def _settings(tmp_path: Path | None = None, **overrides) -> Settings:
    """Settings with every provider key blank unless overridden."""
    defaults = {
        "gemini_api_key": "",
        "openai_api_key": "",
        "openai_base_url": "",
        "anthropic_api_key": "",
        "google_application_credentials": "",
        "imagekit_public_key": "",
        "imagekit_private_key": "",
        "imagekit_url_endpoint": "",
        "jwt_secret": "factory-test-secret-long-enough-for-hs256",
        "app_env": "test",
        "frontend_url": "http://localhost:9002",
    }
    if tmp_path is not None:
        defaults["catalog_db_path"] = str(tmp_path / "catalog.db")
        defaults["local_media_dir"] = str(tmp_path / "media")
    defaults.update(overrides)
    return Settings(**defaults)


# ======================================================================
# _build_llm_provider
# ======================================================================


class TestBuildLLMProvider:
    """Provider priority: Gemini, then OpenAI, then Anthropic."""

    def test_gemini_first(self) -> None:
        from saraswathi.main import _build_llm_provider

        provider = _build_llm_provider(
            _settings(gemini_api_key="g", openai_api_key="o", anthropic_api_key="a")
        )
        assert provider.get_provider_name() == "gemini"

    def test_openai_second(self) -> None:
        from saraswathi.main import _build_llm_provider

        provider = _build_llm_provider(_settings(openai_api_key="o", anthropic_api_key="a"))
        assert provider.get_provider_name() == "openai"

    def test_anthropic_last(self) -> None:
        from saraswathi.main import _build_llm_provider

        assert _build_llm_provider(_settings(anthropic_api_key="a")).get_provider_name() == "anthropic"

    def test_none_without_keys(self) -> None:
        from saraswathi.main import _build_llm_provider

        assert _build_llm_provider(_settings()) is None


# ======================================================================
# _build_storage_provider
# ======================================================================


class TestBuildStorageProvider:
    def test_local_by_default(self, tmp_path: Path) -> None:
        from saraswathi.main import _build_storage_provider
        from saraswathi.providers.storage.local_storage_provider import LocalImageStorageProvider

        storage = _build_storage_provider(_settings(tmp_path))
        assert isinstance(storage, LocalImageStorageProvider)
        assert storage.media_dir == tmp_path / "media"

    def test_imagekit_when_configured(self) -> None:
        from saraswathi.main import _build_storage_provider

        storage = _build_storage_provider(
            _settings(
                imagekit_public_key="pub",
                imagekit_private_key="priv",
                imagekit_url_endpoint="https://ik.imagekit.io/demo",
            )
        )
        assert storage.get_provider_name() == "imagekit"

    def test_partial_imagekit_falls_back_to_local(self) -> None:
        from saraswathi.main import _build_storage_provider

        storage = _build_storage_provider(_settings(imagekit_private_key="priv"))
        assert storage.get_provider_name() == "local"


# ======================================================================
# _build_ocr_providers
# ======================================================================


class TestBuildOCRProviders:
    def test_tesseract_only_without_vision(self) -> None:
        from saraswathi.main import _build_ocr_providers

        providers = _build_ocr_providers(_settings(), ["google_vision", "tesseract"])
        assert [p.get_provider_name() for p in providers] == ["tesseract"]

    def test_priority_order_is_respected(self, tmp_path: Path) -> None:
        from saraswathi.main import _build_ocr_providers

        creds = tmp_path / "sa.json"
        creds.write_text("{}")
        settings = _settings(google_application_credentials=str(creds))

        for priority in (["tesseract", "google_vision"], ["google_vision", "tesseract"]):
            providers = _build_ocr_providers(settings, priority)
            assert [p.get_provider_name() for p in providers] == priority

    def test_unknown_names_are_skipped(self) -> None:
        from saraswathi.main import _build_ocr_providers

        providers = _build_ocr_providers(_settings(), ["azure", "tesseract"])
        assert [p.get_provider_name() for p in providers] == ["tesseract"]


# ======================================================================
# _build_all / create_app
# ======================================================================


class TestBuildAll:
    def test_components_and_provider_status(self, tmp_path: Path) -> None:
        from saraswathi.main import _build_all

        components = _build_all(_settings(tmp_path, openai_api_key="sk"), DEFAULT_CONFIG)

        assert {
            "catalog", "user_provider", "auth_service", "storage", "llm", "image_service",
            "ocr_service", "analyzer", "pipeline", "upload_config", "provider_status",
        } <= set(components)
        status = components["provider_status"]
        assert status["llm"] == "openai"
        assert status["storage"] == "local"
        assert status["catalog"] == "sqlite_catalog"
        assert components["upload_config"]["max_file_size_mb"] == 50

    def test_no_llm_reports_none(self, tmp_path: Path) -> None:
        from saraswathi.main import _build_all

        components = _build_all(_settings(tmp_path), DEFAULT_CONFIG)
        assert components["provider_status"]["llm"] is None
        assert not components["analyzer"].is_configured


class TestProductionSettings:
    def test_default_secret_rejected_in_production(self, tmp_path: Path) -> None:
        from saraswathi.main import create_app
        from saraswathi.utils.errors import ConfigurationError

        settings = _settings(tmp_path, app_env="production", jwt_secret="change-me-in-production")
        with pytest.raises(ConfigurationError, match="JWT_SECRET"):
            create_app(settings, DEFAULT_CONFIG)

    def test_default_secret_allowed_in_development(self) -> None:
        from saraswathi.main import _check_production_settings

        _check_production_settings(_settings(app_env="development", jwt_secret="change-me-in-production"))

    def test_custom_secret_allowed_in_production(self) -> None:
        from saraswathi.main import _check_production_settings

        _check_production_settings(_settings(app_env="production"))


class TestCreateApp:
    @pytest.fixture
    def client(self, tmp_path: Path):
        from saraswathi.main import create_app

        app = create_app(_settings(tmp_path), DEFAULT_CONFIG)
        with TestClient(app) as test_client:
            yield test_client

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["providers"]["storage"] == "local"
        assert "timestamp" in body

    def test_startup_creates_tables(self, client: TestClient, tmp_path: Path) -> None:
        assert (tmp_path / "catalog.db").exists()
        response = client.get("/api/manuscripts")
        assert response.status_code == 200
        assert response.json()["pagination"]["total"] == 0

    def test_media_mount_serves_local_files(self, client: TestClient, tmp_path: Path) -> None:
        target = tmp_path / "media" / "manuscripts" / "leaf-opt.jpg"
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(b"\xff\xd8jpeg")

        response = client.get("/media/manuscripts/leaf-opt.jpg")
        assert response.status_code == 200
        assert response.content == b"\xff\xd8jpeg"

    def test_cors_allows_frontend(self, client: TestClient) -> None:
        response = client.options(
            "/api/manuscripts",
            headers={
                "Origin": "http://localhost:9002",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert response.headers["access-control-allow-origin"] == "http://localhost:9002"
