"""ImageKit storage provider.

Talks to the ImageKit REST API directly with httpx: uploads go to the
upload endpoint as multipart form data, deletes to the media API.  Both
authenticate with HTTP basic auth using the private key as the username
and an empty password.

Public URLs come back in the upload response, so the public key and URL
endpoint only decide whether ImageKit is configured at all.
"""

from __future__ import annotations

import httpx

from saraswathi.config.settings import Settings
from saraswathi.interfaces.image_storage_provider import IImageStorageProvider
from saraswathi.models.analysis import StoredImage
from saraswathi.utils.errors import StorageError
from saraswathi.utils.logging import get_logger

logger = get_logger(__name__)

_UPLOAD_URL = "https://upload.imagekit.io/api/v1/files/upload"
_FILES_URL = "https://api.imagekit.io/v1/files"
_TIMEOUT = httpx.Timeout(60.0, connect=10.0)


class ImageKitStorageProvider(IImageStorageProvider):
    """Stores manuscript images on the ImageKit CDN."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._private_key = settings.imagekit_private_key
        self._transport = transport

    async def upload(self, data: bytes, file_name: str, folder: str) -> StoredImage:
        form = {
            "fileName": file_name,
            "folder": f"/{folder.strip('/')}",
            "useUniqueFileName": "true",
        }
        try:
            async with self._client() as client:
                response = await client.post(
                    _UPLOAD_URL,
                    data=form,
                    files={"file": (file_name, data)},
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as exc:
            raise StorageError(
                f"ImageKit upload failed for {file_name}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if "url" not in payload or "fileId" not in payload:
            raise StorageError(
                f"ImageKit upload response missing url/fileId for {file_name}",
                provider_name=self.get_provider_name(),
            )
        logger.info("imagekit_upload_complete", file_name=file_name, file_id=payload["fileId"])
        return StoredImage(url=payload["url"], file_id=payload["fileId"])

    async def delete(self, file_id: str) -> None:
        try:
            async with self._client() as client:
                response = await client.delete(f"{_FILES_URL}/{file_id}")
                if response.status_code == 404:
                    return
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise StorageError(
                f"ImageKit delete failed for {file_id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("imagekit_delete_complete", file_id=file_id)

    async def fetch(self, url: str) -> bytes:
        try:
            async with httpx.AsyncClient(
                timeout=_TIMEOUT, follow_redirects=True, transport=self._transport
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as exc:
            raise StorageError(
                f"Failed to fetch image {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def get_provider_name(self) -> str:
        return "imagekit"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            auth=(self._private_key, ""),
            timeout=_TIMEOUT,
            transport=self._transport,
        )
