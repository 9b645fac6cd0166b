"""Abstract base class for user account persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from saraswathi.models.user import User


# Concrete implementation: SQLiteUserProvider (saraswathi/providers/users/)
class IUserProvider(ABC):
    """Contract for storing and looking up user accounts.

    Emails are unique and compared lower-cased.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices if they don't exist.  Called at startup."""

    @abstractmethod
    async def create_user(self, user: User) -> User:
        """Insert a new account.

        Raises
        ------
        saraswathi.utils.errors.AccountExistsError
            If the email is already registered.
        """

    @abstractmethod
    async def get_user_by_email(self, email: str) -> User | None:
        """Look up an account by email (case-insensitive)."""

    @abstractmethod
    async def get_user_by_id(self, user_id: str) -> User | None:
        """Look up an account by id."""

    @abstractmethod
    async def update_profile(self, user_id: str, fields: dict[str, Any]) -> User | None:
        """Update ``name``, ``bio`` and/or ``avatar``; other keys are ignored."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
