"""Concrete adapters for the interfaces in ``saraswathi.interfaces``.

    ocr/      Google Cloud Vision, Tesseract
    llm/      Gemini, OpenAI, Anthropic
    storage/  ImageKit CDN, local filesystem
    catalog/  SQLite manuscripts/uploads/annotations with FTS5 search
    users/    SQLite user accounts
"""
