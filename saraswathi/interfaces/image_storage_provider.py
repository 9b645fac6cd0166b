"""Abstract base class for image storage backends.

Manuscript images are hosted by an external CDN (ImageKit) in production
and by a local directory during development.  Either way the rest of the
application only sees URLs and opaque file ids.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from saraswathi.models.analysis import StoredImage


# Concrete implementations: ImageKitStorageProvider, LocalImageStorageProvider
# Located in: saraswathi/providers/storage/
class IImageStorageProvider(ABC):
    """Contract for storing, fetching and deleting image files."""

    @abstractmethod
    async def upload(self, data: bytes, file_name: str, folder: str) -> StoredImage:
        """Store *data* under *folder*/*file_name* and return its public URL.

        Raises
        ------
        saraswathi.utils.errors.StorageError
            If the backend rejects the file.
        """

    @abstractmethod
    async def delete(self, file_id: str) -> None:
        """Remove a previously stored file.  Unknown ids are ignored."""

    @abstractmethod
    async def fetch(self, url: str) -> bytes:
        """Download the bytes behind a URL returned by :meth:`upload`.

        Raises
        ------
        saraswathi.utils.errors.StorageError
            If the file cannot be retrieved.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return an identifier such as ``"imagekit"`` or ``"local"``."""
