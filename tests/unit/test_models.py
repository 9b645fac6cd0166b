"""Unit tests for the Pydantic domain models and the error hierarchy."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from saraswathi.models import (
    PENDING_ANALYSIS_TITLE,
    AuthContext,
    ConfidenceScores,
    ImageVariants,
    Manuscript,
    ManuscriptAnalysis,
    ManuscriptImage,
    ManuscriptStatus,
    NamedEntities,
    OCRResult,
    StoredImage,
    Upload,
    UploadStatus,
    User,
    UserRole,
)
from saraswathi.utils.errors import (
    AccountExistsError,
    AuthenticationError,
    CatalogError,
    OCRExtractionError,
    StorageError,
)


# ======================================================================
# Manuscript / Upload / User
# ======================================================================


class TestManuscript:
    def test_defaults(self, sample_manuscript: Manuscript) -> None:
        assert sample_manuscript.status == ManuscriptStatus.PUBLISHED
        assert sample_manuscript.category == "General"
        assert sample_manuscript.views == 0
        assert sample_manuscript.tags == []
        assert sample_manuscript.sentiment is None
        assert sample_manuscript.entities.total() == 0
        assert len(sample_manuscript.id) == 32

    def test_required_fields(self) -> None:
        with pytest.raises(ValidationError):
            Manuscript(user_id="u", title="t")

    def test_is_owned_by(self, sample_manuscript: Manuscript) -> None:
        assert sample_manuscript.is_owned_by("user-1")
        assert not sample_manuscript.is_owned_by("user-2")
        assert not sample_manuscript.is_owned_by(None)
        assert not sample_manuscript.is_owned_by("")

    def test_status_from_string(self, manuscript_factory) -> None:
        m = manuscript_factory(status="draft")
        assert m.status is ManuscriptStatus.DRAFT

    def test_named_entities_total(self) -> None:
        entities = NamedEntities(people=["Vyasa"], places=["Kurukshetra", "Hastinapura"], dates=["c. 400 BCE"])
        assert entities.total() == 4


class TestUpload:
    def test_defaults(self) -> None:
        upload = Upload(
            file_name="gita-abc.jpg",
            original_name="gita.jpg",
            mime_type="image/jpeg",
            size=1024,
            uploaded_by="scribe@example.com",
            image_url="https://cdn.test/gita-abc-opt.jpg",
        )
        assert upload.status == UploadStatus.PROCESSING
        assert upload.manuscript_id == ""
        assert upload.file_url == ""


class TestUser:
    def test_email_is_normalised(self) -> None:
        user = User(email="  Scribe@Example.COM ", password_hash="x", name="Scribe")
        assert user.email == "scribe@example.com"
        assert user.role == UserRole.USER

    def test_role_values(self) -> None:
        assert {r.value for r in UserRole} == {"user", "admin", "contributor"}


class TestAuthContext:
    def test_anonymous(self) -> None:
        auth = AuthContext()
        assert not auth.is_authenticated
        assert not auth.is_admin
        assert auth.owner_id == ""
        assert auth.uploader_id == ""

    def test_jwt_identity_prefers_user_id_for_ownership(self) -> None:
        auth = AuthContext(user_id="u1", email="a@b.c", role="admin")
        assert auth.is_authenticated
        assert auth.is_admin
        assert auth.owner_id == "u1"
        assert auth.uploader_id == "a@b.c"

    def test_header_identity_uses_email(self) -> None:
        auth = AuthContext(email="a@b.c")
        assert auth.is_authenticated
        assert auth.owner_id == "a@b.c"
        assert auth.uploader_id == "a@b.c"

    def test_frozen(self) -> None:
        auth = AuthContext(email="a@b.c")
        with pytest.raises(ValidationError):
            auth.role = "admin"


# ======================================================================
# Pipeline value models
# ======================================================================


class TestManuscriptImage:
    def test_from_bytes_keeps_data_private(self) -> None:
        image = ManuscriptImage.from_bytes(b"\xff\xd8data", filename="leaf.jpg")
        assert image.image_data == b"\xff\xd8data"
        assert "image_data" not in image.model_dump()
        assert image.content_type == "image/jpeg"


class TestOCRResult:
    def test_empty(self) -> None:
        result = OCRResult.empty("tesseract")
        assert result.text == ""
        assert result.confidence == 0.0
        assert result.provider_used == "tesseract"
        assert result.detected_language == "unknown"

    def test_confidence_bounds(self) -> None:
        with pytest.raises(ValidationError):
            OCRResult(text="x", confidence=1.5)


class TestManuscriptAnalysis:
    def test_fallback(self) -> None:
        analysis = ManuscriptAnalysis.fallback("raw text")
        assert analysis.title == PENDING_ANALYSIS_TITLE
        assert analysis.category == "General"
        assert analysis.tags == ["pending-analysis"]
        assert analysis.ocr_text == "raw text"
        assert analysis.confidence_scores == ConfidenceScores()
        assert analysis.sentiment.description == "Not analyzed"
        assert not analysis.has_valid_analysis

    @pytest.mark.parametrize(
        ("scores", "expected"),
        [
            (ConfidenceScores(language=0.8), True),
            (ConfidenceScores(script=0.1), True),
            (ConfidenceScores(century=0.9, region=0.9), False),
            (ConfidenceScores(), False),
        ],
    )
    def test_has_valid_analysis(self, scores: ConfidenceScores, expected: bool) -> None:
        assert ManuscriptAnalysis(confidence_scores=scores).has_valid_analysis is expected


class TestImageVariants:
    def test_image_url_is_optimized(self) -> None:
        variants = ImageVariants(
            file_name="leaf-1.jpg",
            optimized=StoredImage(url="https://cdn/leaf-1-opt.jpg", file_id="a"),
            thumbnail=StoredImage(url="https://cdn/leaf-1-thumb.jpg", file_id="b"),
        )
        assert variants.image_url == "https://cdn/leaf-1-opt.jpg"
        assert variants.original is None
        assert variants.optimized_data is None


# ======================================================================
# Errors
# ======================================================================


class TestErrors:
    def test_str_includes_provider(self) -> None:
        exc = OCRExtractionError("quota exceeded", provider_name="google_vision")
        assert str(exc) == "[google_vision] quota exceeded"
        assert exc.message == "quota exceeded"

    def test_str_without_provider(self) -> None:
        assert str(StorageError("disk full")) == "disk full"

    def test_hierarchy(self) -> None:
        exc = AccountExistsError()
        assert isinstance(exc, AuthenticationError)
        assert isinstance(exc, CatalogError)
        assert exc.message == "Email already registered"
