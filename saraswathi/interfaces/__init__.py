"""Public interface definitions for all external service providers.

Every external service Saraswathi talks to is reached through one of the
abstract base classes below.  Concrete adapters live in
``saraswathi/providers/`` and are wired together in ``saraswathi/main.py``.

CONCRETE PROVIDER MAP:
    Interface                  ->  Concrete implementations
    ---------------------------------------------------------------------
    IOCRProvider               ->  GoogleVisionOCRProvider, TesseractOCRProvider
    ILLMProvider               ->  GeminiLLMProvider, OpenAILLMProvider,
                                   AnthropicLLMProvider
    IImageStorageProvider      ->  ImageKitStorageProvider,
                                   LocalImageStorageProvider
    ICatalogProvider           ->  SQLiteCatalogProvider
    IUserProvider              ->  SQLiteUserProvider
"""

from saraswathi.interfaces.catalog_provider import ICatalogProvider
from saraswathi.interfaces.image_storage_provider import IImageStorageProvider
from saraswathi.interfaces.llm_provider import ILLMProvider
from saraswathi.interfaces.ocr_provider import IOCRProvider
from saraswathi.interfaces.user_provider import IUserProvider

__all__ = [
    "ICatalogProvider",
    "IImageStorageProvider",
    "ILLMProvider",
    "IOCRProvider",
    "IUserProvider",
]
