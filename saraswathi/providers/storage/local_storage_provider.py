"""Local filesystem storage provider.

Used when ImageKit is not configured.  Files are written under
``local_media_dir`` and served by the app's ``/media`` static mount, so
the URLs returned here are relative to the API origin.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import httpx

from saraswathi.interfaces.image_storage_provider import IImageStorageProvider
from saraswathi.models.analysis import StoredImage
from saraswathi.utils.errors import StorageError
from saraswathi.utils.logging import get_logger

logger = get_logger(__name__)


class LocalImageStorageProvider(IImageStorageProvider):
    """Stores images in a directory on disk."""

    def __init__(self, media_dir: str | Path, media_url: str = "/media") -> None:
        self._media_dir = Path(media_dir)
        self._media_url = media_url.rstrip("/")

    @property
    def media_dir(self) -> Path:
        return self._media_dir

    async def upload(self, data: bytes, file_name: str, folder: str) -> StoredImage:
        file_id = f"{folder.strip('/')}/{Path(file_name).name}"
        target = self._media_dir / file_id
        try:
            await asyncio.to_thread(self._write, target, data)
        except OSError as exc:
            raise StorageError(
                f"Could not write {target}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("local_upload_complete", file_id=file_id, size=len(data))
        return StoredImage(url=f"{self._media_url}/{file_id}", file_id=file_id)

    async def delete(self, file_id: str) -> None:
        target = self._resolve(file_id)
        await asyncio.to_thread(target.unlink, True)

    async def fetch(self, url: str) -> bytes:
        prefix = f"{self._media_url}/"
        if url.startswith(prefix):
            target = self._resolve(url[len(prefix):])
            try:
                return await asyncio.to_thread(target.read_bytes)
            except OSError as exc:
                raise StorageError(
                    f"Could not read {target}: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc

        # Records created before a storage switch may point elsewhere.
        try:
            async with httpx.AsyncClient(timeout=30.0, follow_redirects=True) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as exc:
            raise StorageError(
                f"Failed to fetch image {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def get_provider_name(self) -> str:
        return "local"

    def _resolve(self, file_id: str) -> Path:
        target = (self._media_dir / file_id).resolve()
        if not target.is_relative_to(self._media_dir.resolve()):
            raise StorageError(
                f"File id escapes media directory: {file_id}",
                provider_name=self.get_provider_name(),
            )
        return target

    @staticmethod
    def _write(target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
