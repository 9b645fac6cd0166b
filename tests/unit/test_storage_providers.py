"""Unit tests for the ImageKit and local filesystem storage providers."""

from __future__ import annotations

import base64
from pathlib import Path

import httpx
import pytest

from saraswathi.config.settings import Settings
from saraswathi.providers.storage.imagekit_provider import ImageKitStorageProvider
from saraswathi.providers.storage.local_storage_provider import LocalImageStorageProvider
from saraswathi.utils.errors import StorageError


# ======================================================================
# ImageKit
# ======================================================================


def _imagekit(handler) -> ImageKitStorageProvider:
    settings = Settings(
        imagekit_public_key="public_test",
        imagekit_private_key="private_test",
        imagekit_url_endpoint="https://ik.imagekit.io/demo/",
    )
    return ImageKitStorageProvider(settings, transport=httpx.MockTransport(handler))


class TestImageKitStorageProvider:
    async def test_upload_posts_multipart_with_basic_auth(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"url": "https://ik.imagekit.io/demo/manuscripts/gita-opt.jpg", "fileId": "ik-1"},
            )

        stored = await _imagekit(handler).upload(b"jpegdata", "gita-opt.jpg", "manuscripts")

        assert stored.url == "https://ik.imagekit.io/demo/manuscripts/gita-opt.jpg"
        assert stored.file_id == "ik-1"
        request = seen[0]
        assert str(request.url) == "https://upload.imagekit.io/api/v1/files/upload"
        expected = base64.b64encode(b"private_test:").decode()
        assert request.headers["authorization"] == f"Basic {expected}"
        assert b'name="folder"' in request.content
        assert b"/manuscripts" in request.content
        assert b"jpegdata" in request.content

    async def test_upload_url_comes_from_response(self) -> None:
        """The configured endpoint is never used to build URLs."""
        provider = _imagekit(
            lambda request: httpx.Response(
                200, json={"url": "https://cdn.example.org/custom/a.jpg", "fileId": "ik-2"}
            )
        )
        stored = await provider.upload(b"x", "a.jpg", "manuscripts")
        assert stored.url == "https://cdn.example.org/custom/a.jpg"
        assert not hasattr(provider, "_url_endpoint")

    async def test_upload_http_error(self) -> None:
        provider = _imagekit(lambda request: httpx.Response(403, json={"message": "forbidden"}))
        with pytest.raises(StorageError) as exc_info:
            await provider.upload(b"x", "a.jpg", "manuscripts")
        assert exc_info.value.provider_name == "imagekit"

    async def test_upload_response_missing_fields(self) -> None:
        provider = _imagekit(lambda request: httpx.Response(200, json={"name": "a.jpg"}))
        with pytest.raises(StorageError, match="missing url/fileId"):
            await provider.upload(b"x", "a.jpg", "manuscripts")

    async def test_delete(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        await _imagekit(handler).delete("ik-1")
        assert seen[0].method == "DELETE"
        assert str(seen[0].url) == "https://api.imagekit.io/v1/files/ik-1"

    async def test_delete_unknown_file_is_ignored(self) -> None:
        await _imagekit(lambda request: httpx.Response(404)).delete("gone")

    async def test_delete_server_error(self) -> None:
        with pytest.raises(StorageError):
            await _imagekit(lambda request: httpx.Response(500)).delete("ik-1")

    async def test_fetch(self) -> None:
        provider = _imagekit(lambda request: httpx.Response(200, content=b"\xff\xd8bytes"))
        assert await provider.fetch("https://ik.imagekit.io/demo/a.jpg") == b"\xff\xd8bytes"

    async def test_fetch_not_found(self) -> None:
        provider = _imagekit(lambda request: httpx.Response(404))
        with pytest.raises(StorageError, match="Failed to fetch"):
            await provider.fetch("https://ik.imagekit.io/demo/missing.jpg")


# ======================================================================
# Local filesystem
# ======================================================================


class TestLocalImageStorageProvider:
    @pytest.fixture
    def storage(self, tmp_path: Path) -> LocalImageStorageProvider:
        return LocalImageStorageProvider(tmp_path / "media", media_url="/media/")

    async def test_upload_writes_file_and_returns_relative_url(
        self, storage: LocalImageStorageProvider
    ) -> None:
        stored = await storage.upload(b"abc", "leaf-opt.jpg", "/manuscripts/")
        assert stored.url == "/media/manuscripts/leaf-opt.jpg"
        assert stored.file_id == "manuscripts/leaf-opt.jpg"
        assert (storage.media_dir / "manuscripts" / "leaf-opt.jpg").read_bytes() == b"abc"

    async def test_upload_strips_directories_from_name(
        self, storage: LocalImageStorageProvider
    ) -> None:
        stored = await storage.upload(b"abc", "../../evil.jpg", "manuscripts")
        assert stored.file_id == "manuscripts/evil.jpg"

    async def test_fetch_round_trip(self, storage: LocalImageStorageProvider) -> None:
        stored = await storage.upload(b"page", "leaf.jpg", "manuscripts")
        assert await storage.fetch(stored.url) == b"page"

    async def test_fetch_missing_file(self, storage: LocalImageStorageProvider) -> None:
        with pytest.raises(StorageError):
            await storage.fetch("/media/manuscripts/nope.jpg")

    async def test_delete(self, storage: LocalImageStorageProvider) -> None:
        stored = await storage.upload(b"page", "leaf.jpg", "manuscripts")
        await storage.delete(stored.file_id)
        assert not (storage.media_dir / stored.file_id).exists()
        # Deleting again is a no-op.
        await storage.delete(stored.file_id)

    async def test_delete_rejects_escape(self, storage: LocalImageStorageProvider) -> None:
        with pytest.raises(StorageError, match="escapes"):
            await storage.delete("../outside.jpg")

    def test_provider_name(self, storage: LocalImageStorageProvider) -> None:
        assert storage.get_provider_name() == "local"
