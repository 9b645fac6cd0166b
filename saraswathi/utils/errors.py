"""Custom exception hierarchy for Saraswathi.

All application exceptions inherit from :class:`CatalogError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "google_vision", "gemini", "imagekit") caused the
failure.

    CatalogError  (base -- catch-all for any catalogue error)
    +-- OCRExtractionError       (image-to-text extraction)
    +-- AIAnalysisError          (generative model call or unparseable reply)
    +-- StorageError             (image upload / fetch / delete)
    +-- PipelineError            (ingestion and enrichment sequencing)
    +-- ConfigurationError       (startup / missing config)
    +-- AuthenticationError      (bad credentials or token)
        +-- AccountExistsError   (email already registered)
"""


class CatalogError(Exception):
    """Base exception for all Saraswathi errors.

    ``__str__`` prefixes the provider name in brackets for log output,
    e.g. ``[gemini] Model returned no text``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


class OCRExtractionError(CatalogError):
    """Raised when OCR text extraction fails (Google Vision, Tesseract)."""

    def __init__(
        self,
        message: str = "OCR text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class AIAnalysisError(CatalogError):
    """Raised when a generative model call fails or returns an unusable reply."""

    def __init__(
        self,
        message: str = "AI analysis failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StorageError(CatalogError):
    """Raised when storing, fetching, or deleting an image fails."""

    def __init__(
        self,
        message: str = "Image storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PipelineError(CatalogError):
    """Raised when the ingestion/enrichment pipeline cannot continue."""

    def __init__(
        self,
        message: str = "Manuscript pipeline failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(CatalogError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class AuthenticationError(CatalogError):
    """Raised when a token cannot be verified or credentials are wrong."""

    def __init__(
        self,
        message: str = "Authentication failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class AccountExistsError(AuthenticationError):
    """Raised when registering an email that already has an account."""

    def __init__(
        self,
        message: str = "Email already registered",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
