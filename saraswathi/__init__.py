"""Saraswathi: manuscript catalogue backend with OCR and AI enrichment."""

__version__ = "0.1.0"
