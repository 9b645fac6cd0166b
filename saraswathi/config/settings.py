"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# This class reads configuration from TWO sources (in priority order):
#
#   1. **Environment variables** - e.g., GEMINI_API_KEY=abc123
#      (highest priority - always wins)
#   2. **.env file** - key=value lines in the project root .env file
#      (lower priority - used for local development)
#
# Field name `gemini_api_key` maps to env var `GEMINI_API_KEY`.
#
# An empty string means "not configured": provider selection in main.py
# skips providers whose keys are empty and falls through to the next.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Saraswathi application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Authentication ===
    jwt_secret: str = "change-me-in-production"
    jwt_expiry_days: int = 7

    # === Persistence ===
    catalog_db_path: str = "data/catalog.db"

    # === Generative AI ===
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoints (TogetherAI, etc.)
    openai_model: str = ""
    anthropic_api_key: str = ""

    # === OCR ===
    # Path to a service-account JSON; empty means Vision is not configured.
    google_application_credentials: str = ""

    # === Image storage ===
    imagekit_public_key: str = ""
    imagekit_private_key: str = ""
    imagekit_url_endpoint: str = ""
    local_media_dir: str = "data/media"
    local_media_url: str = "/media"

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 3001
    app_env: str = "development"
    frontend_url: str = "http://localhost:9002"
    log_level: str = "INFO"

    def is_vision_configured(self) -> bool:
        """Return ``True`` when Google Vision credentials are present."""
        return bool(self.google_application_credentials)

    def is_imagekit_configured(self) -> bool:
        """Return ``True`` when all three ImageKit settings are present."""
        return bool(
            self.imagekit_public_key
            and self.imagekit_private_key
            and self.imagekit_url_endpoint
        )

    def get_available_llm_providers(self) -> list[str]:
        """Return LLM provider names that have non-empty API keys configured."""
        providers: list[str] = []
        if self.gemini_api_key:
            providers.append("gemini")
        if self.openai_api_key:
            providers.append("openai")
        if self.anthropic_api_key:
            providers.append("anthropic")
        return providers
