"""Image storage adapters: ImageKit CDN and local filesystem."""

from saraswathi.providers.storage.imagekit_provider import ImageKitStorageProvider
from saraswathi.providers.storage.local_storage_provider import LocalImageStorageProvider

__all__ = ["ImageKitStorageProvider", "LocalImageStorageProvider"]
