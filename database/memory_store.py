"""In-memory account store for tests and local runs."""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Dict, Optional

from auth.errors import DuplicateEmailError, RecordNotFoundError
from auth.models import User, normalize_email, normalized
from database.store import AccountStore


class InMemoryAccountStore(AccountStore):
    """Dict-backed store keyed by user id.

    Writes are serialized by an ``asyncio.Lock`` so the uniqueness check and
    the write happen as one step.  Records are copied in and out, so a
    caller mutating a returned ``User`` changes nothing until ``save``.

    Examples:
        >>> store = InMemoryAccountStore()
        >>> user = await store.create(User(email="a@b.com", password_hash="..."))
        >>> found = await store.find_by_id(user.id)
    """

    def __init__(self) -> None:
        self._users: Dict[str, User] = {}
        self._lock = asyncio.Lock()

    def _email_taken(self, email: str, exclude_id: Optional[str] = None) -> bool:
        return any(
            u.email == email and u.id != exclude_id for u in self._users.values()
        )

    async def find_by_email(self, email: str) -> Optional[User]:
        email = normalize_email(email)
        for user in self._users.values():
            if user.email == email:
                return user.model_copy()
        return None

    async def find_by_id(self, user_id: str) -> Optional[User]:
        user = self._users.get(user_id)
        return user.model_copy() if user is not None else None

    async def create(self, user: User) -> User:
        user = normalized(user)
        async with self._lock:
            if self._email_taken(user.email):
                raise DuplicateEmailError()
            stored = user.model_copy(
                update={"id": str(uuid.uuid4()), "created_at": datetime.now(timezone.utc)}
            )
            self._users[stored.id] = stored
        return stored.model_copy()

    async def save(self, user: User) -> User:
        user = normalized(user)
        async with self._lock:
            current = self._users.get(user.id) if user.id else None
            if current is None:
                raise RecordNotFoundError(f"no user with id {user.id!r}")
            if self._email_taken(user.email, exclude_id=user.id):
                raise DuplicateEmailError()
            stored = current.model_copy(
                update={
                    "email": user.email,
                    "name": user.name,
                    "password_hash": user.password_hash,
                }
            )
            self._users[stored.id] = stored
        return stored.model_copy()

    async def delete_by_id(self, user_id: str) -> bool:
        async with self._lock:
            return self._users.pop(user_id, None) is not None

    def __len__(self) -> int:
        return len(self._users)
