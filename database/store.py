"""
Account store contract.

The credential handler only talks to persistence through this interface,
so any backend (SQL, in-memory, ...) can be swapped in.  Implementations
own the email-uniqueness invariant and normalize records on every write.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from auth.models import User


class AccountStore(ABC):

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[User]:
        """Return the user with this (normalized) email, or ``None``."""

    @abstractmethod
    async def find_by_id(self, user_id: str) -> Optional[User]:
        """Return the user with this id, or ``None`` (also for malformed ids)."""

    @abstractmethod
    async def create(self, user: User) -> User:
        """
        Persist a new user and return it with ``id`` assigned.

        Raises ``DuplicateEmailError`` or ``InvalidFieldsError``.
        """

    @abstractmethod
    async def save(self, user: User) -> User:
        """
        Write back name, email and password hash of an existing user.

        Raises ``DuplicateEmailError``, ``InvalidFieldsError`` or
        ``RecordNotFoundError``.
        """

    @abstractmethod
    async def delete_by_id(self, user_id: str) -> bool:
        """Remove the user; ``False`` when nothing was deleted."""

    async def close(self) -> None:
        """Release backend resources."""
