"""YAML configuration loader for the pipeline tuning knobs.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. DEFAULT_CONFIG      - Built-in defaults below
#   2. config/config.yaml  - Static tuning values checked into the repo
#
# config.yaml carries the pipeline knobs (variant widths, JPEG qualities,
# upload limits, OCR priority). Secrets and endpoints never live here:
# Settings reads them from .env and the environment.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

# Defaults used when config.yaml is missing or omits a section.
DEFAULT_CONFIG: dict = {
    "images": {
        "optimized_width": 1600,
        "optimized_quality": 82,
        "thumbnail_width": 400,
        "thumbnail_quality": 70,
        "folder": "manuscripts",
        "pdf_render_dpi": 150,
    },
    "uploads": {
        "max_file_size_mb": 50,
        "allowed_content_types": [
            "image/jpeg",
            "image/png",
            "image/webp",
            "application/pdf",
        ],
    },
    "ocr": {
        "provider_priority": ["google_vision", "tesseract"],
        "min_confidence": 0.5,
    },
    "analysis": {
        "ocr_prompt_chars": 2000,
        "max_keywords": 10,
        "max_highlights": 10,
    },
    "pipeline": {
        "max_concurrent_jobs": 2,
    },
}


def load_config(path: str = "config/config.yaml") -> dict:
    """Load YAML config merged over DEFAULT_CONFIG.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Fully resolved configuration dictionary.
    """
    config: dict = {}
    _deep_merge(config, _copy(DEFAULT_CONFIG))

    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
        _deep_merge(config, yaml_config)

    return config


def _copy(value: dict) -> dict:
    """Deep-copy nested dicts so DEFAULT_CONFIG is never mutated."""
    return {
        key: _copy(item) if isinstance(item, dict) else (list(item) if isinstance(item, list) else item)
        for key, item in value.items()
    }


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
