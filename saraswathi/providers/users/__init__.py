"""User account persistence adapters."""

from saraswathi.providers.users.sqlite_user_provider import SQLiteUserProvider

__all__ = ["SQLiteUserProvider"]
