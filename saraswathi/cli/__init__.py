"""CLI tools for the Saraswathi catalogue.

- ``python -m saraswathi.cli purge-manuscripts``: delete every manuscript
  (guarded by ``FORCE_DELETE_MANUSCRIPTS=true``).
- ``python -m saraswathi.cli serve``: run the API server with uvicorn.
"""
