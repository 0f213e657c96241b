"""
SQLAlchemy-backed account store.

Email uniqueness is enforced by the unique index on ``users.email``; the
store never checks before writing, it lets the database reject the
insert/update and translates the ``IntegrityError``.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from auth.errors import DuplicateEmailError, RecordNotFoundError, StoreError
from auth.models import User, normalize_email, normalized
from database.models import UserRecord
from database.store import AccountStore

logger = logging.getLogger(__name__)


def _to_uuid(value: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(value)
    except (ValueError, TypeError, AttributeError):
        return None


def _to_user(record: UserRecord) -> User:
    return User(
        id=str(record.user_id),
        email=record.email,
        name=record.name,
        password_hash=record.password_hash,
        created_at=record.created_at,
    )


class SqlAccountStore(AccountStore):
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: Optional[AsyncEngine] = None,
    ) -> None:
        self._session_factory = session_factory
        self.engine = engine

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateEmailError() from exc
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.error("Account store failure: %s", exc)
                raise StoreError(str(exc)) from exc

    async def find_by_email(self, email: str) -> Optional[User]:
        async with self._session() as session:
            result = await session.execute(
                select(UserRecord).where(UserRecord.email == normalize_email(email))
            )
            record = result.scalar_one_or_none()
            return _to_user(record) if record is not None else None

    async def find_by_id(self, user_id: str) -> Optional[User]:
        uid = _to_uuid(user_id)
        if uid is None:
            return None
        async with self._session() as session:
            record = await session.get(UserRecord, uid)
            return _to_user(record) if record is not None else None

    async def create(self, user: User) -> User:
        user = normalized(user)
        record = UserRecord(
            user_id=uuid.uuid4(),
            email=user.email,
            name=user.name,
            password_hash=user.password_hash,
            created_at=datetime.now(timezone.utc),
        )
        async with self._session() as session:
            session.add(record)
            await session.flush()
        logger.debug("Inserted user %s", record.user_id)
        return _to_user(record)

    async def save(self, user: User) -> User:
        uid = _to_uuid(user.id) if user.id else None
        if uid is None:
            raise RecordNotFoundError(f"no user with id {user.id!r}")
        user = normalized(user)
        async with self._session() as session:
            record = await session.get(UserRecord, uid)
            if record is None:
                raise RecordNotFoundError(f"no user with id {user.id!r}")
            record.email = user.email
            record.name = user.name
            record.password_hash = user.password_hash
            await session.flush()
            return _to_user(record)

    async def delete_by_id(self, user_id: str) -> bool:
        uid = _to_uuid(user_id)
        if uid is None:
            return False
        async with self._session() as session:
            result = await session.execute(
                delete(UserRecord).where(UserRecord.user_id == uid)
            )
            return result.rowcount > 0

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
