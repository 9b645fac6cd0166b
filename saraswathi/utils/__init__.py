"""Shared utilities: logging, errors, OCR text cleanup."""
