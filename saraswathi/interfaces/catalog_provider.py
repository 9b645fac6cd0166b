"""Abstract base class for the manuscript catalogue store.

The catalogue owns three collections (manuscripts, uploads, annotations)
plus a full-text index over the searchable manuscript fields.  The default
implementation is SQLite with an FTS5 virtual table; a networked document
store could implement the same contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from saraswathi.models.annotation import Annotation
from saraswathi.models.manuscript import Manuscript, ManuscriptStatus
from saraswathi.models.upload import Upload


# Concrete implementation: SQLiteCatalogProvider (saraswathi/providers/catalog/)
class ICatalogProvider(ABC):
    """Contract for catalogue persistence.

    All operations are async to support network-backed stores.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables, indices and the search index if missing."""

    # -- manuscripts -------------------------------------------------------

    @abstractmethod
    async def create_manuscript(self, manuscript: Manuscript) -> Manuscript:
        """Insert *manuscript* and index it for search."""

    @abstractmethod
    async def get_manuscript(self, manuscript_id: str) -> Manuscript | None:
        """Return the manuscript or ``None`` when it does not exist."""

    @abstractmethod
    async def increment_views(self, manuscript_id: str) -> Manuscript | None:
        """Atomically add one to ``views`` and return the updated record."""

    @abstractmethod
    async def update_manuscript(
        self, manuscript_id: str, fields: dict[str, Any]
    ) -> Manuscript | None:
        """Apply a partial update and bump ``updated_at``.

        Unknown keys are ignored.  Returns the updated record, or ``None``
        when the manuscript does not exist.
        """

    @abstractmethod
    async def delete_manuscript(self, manuscript_id: str) -> bool:
        """Delete a manuscript; ``False`` if nothing was deleted."""

    @abstractmethod
    async def list_manuscripts(
        self,
        *,
        status: ManuscriptStatus | None = ManuscriptStatus.PUBLISHED,
        user_id: str | None = None,
        category: str | None = None,
        language: str | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 12,
    ) -> tuple[list[Manuscript], int]:
        """Return one page of matching manuscripts and the total match count.

        Results are newest first.  With *search*, results are ranked by
        text relevance first and recency second.
        """

    @abstractmethod
    async def list_categories(self) -> list[str]:
        """Distinct categories of published manuscripts, sorted."""

    @abstractmethod
    async def list_languages(self) -> list[str]:
        """Distinct languages of published manuscripts, sorted."""

    @abstractmethod
    async def purge_manuscripts(self) -> int:
        """Delete every manuscript and return how many were removed."""

    # -- uploads -----------------------------------------------------------

    @abstractmethod
    async def create_upload(self, upload: Upload) -> Upload:
        """Insert an upload record."""

    @abstractmethod
    async def get_upload(self, upload_id: str) -> Upload | None:
        """Return the upload or ``None``."""

    @abstractmethod
    async def update_upload(self, upload_id: str, fields: dict[str, Any]) -> Upload | None:
        """Apply a partial update; ``None`` when the upload does not exist."""

    @abstractmethod
    async def list_uploads_by_uploader(self, identifiers: list[str]) -> list[Upload]:
        """Uploads whose ``uploaded_by`` matches any identifier, newest first."""

    # -- annotations -------------------------------------------------------

    @abstractmethod
    async def create_annotation(self, annotation: Annotation) -> Annotation:
        """Insert an annotation."""

    @abstractmethod
    async def list_annotations(self, manuscript_id: str) -> list[Annotation]:
        """Annotations on a manuscript, newest first."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
