"""Configuration module: exports Settings, load_config, and a module-level singleton."""

from saraswathi.config.loader import DEFAULT_CONFIG, load_config
from saraswathi.config.settings import Settings

settings = Settings()

__all__ = ["DEFAULT_CONFIG", "Settings", "load_config", "settings"]
