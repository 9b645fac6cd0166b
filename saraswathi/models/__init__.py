"""Saraswathi domain models: re-exports all public model classes.

    - manuscript.py - Catalogue record + sentiment/entities/confidence
    - upload.py     - Upload bookkeeping and job status
    - user.py       - Accounts and the per-request auth context
    - annotation.py - Scholarly notes on a manuscript
    - analysis.py   - Pipeline values (image, OCR result, AI analysis, variants)
"""

from __future__ import annotations

from saraswathi.models.analysis import (
    PENDING_ANALYSIS_TITLE,
    ImageVariants,
    ManuscriptAnalysis,
    ManuscriptImage,
    OCRResult,
    StoredImage,
)
from saraswathi.models.annotation import Annotation
from saraswathi.models.manuscript import (
    ConfidenceScores,
    Manuscript,
    ManuscriptStatus,
    NamedEntities,
    Sentiment,
)
from saraswathi.models.upload import Upload, UploadStatus
from saraswathi.models.user import AuthContext, User, UserRole

__all__ = [
    "PENDING_ANALYSIS_TITLE",
    "Annotation",
    "AuthContext",
    "ConfidenceScores",
    "ImageVariants",
    "Manuscript",
    "ManuscriptAnalysis",
    "ManuscriptImage",
    "ManuscriptStatus",
    "NamedEntities",
    "OCRResult",
    "Sentiment",
    "StoredImage",
    "Upload",
    "UploadStatus",
    "User",
    "UserRole",
]
