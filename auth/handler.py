"""
Credential handler: the five account operations.

Each operation is self-contained: validate input, optionally verify the
access token, talk to the store, shape the response.  Store and signer are
injected so the handler can run against any ``AccountStore``.

Every failure leaves an operation as an ``AccountError``; anything
unexpected is logged here and replaced by an opaque ``InternalError``.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from auth.errors import (
    AccountError,
    InternalError,
    InvalidCredentialsError,
    InvalidFieldsError,
    InvalidTokenError,
    MissingFieldsError,
    RecordNotFoundError,
    StoreError,
)
from auth.models import DEFAULT_NAME, User, normalize_email
from auth.password import (
    DEFAULT_ROUNDS,
    MAX_PASSWORD_BYTES,
    hash_password,
    password_too_long,
    verify_password,
)
from auth.tokens import TokenSigner
from database.store import AccountStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _operation(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    @functools.wraps(func)
    async def wrapper(self: "CredentialHandler", *args: Any, **kwargs: Any) -> T:
        try:
            return await func(self, *args, **kwargs)
        except AccountError:
            raise
        except Exception as exc:
            logger.error("%s failed unexpectedly: %s", func.__name__, exc, exc_info=True)
            raise InternalError() from exc

    return wrapper


class CredentialHandler:
    def __init__(
        self,
        store: AccountStore,
        signer: TokenSigner,
        bcrypt_rounds: int = DEFAULT_ROUNDS,
    ) -> None:
        self.store = store
        self.signer = signer
        self.bcrypt_rounds = bcrypt_rounds

    # ── helpers ────────────────────────────────────────────────────────

    async def _password_matches(self, password: str, user: User) -> bool:
        return await asyncio.to_thread(verify_password, password, user.password_hash)

    def _verify_token(self, token: Optional[str]) -> str:
        if not token:
            raise MissingFieldsError()
        try:
            return self.signer.verify(token)
        except InvalidTokenError as exc:
            logger.info("Rejected access token: %s", exc)
            raise InvalidCredentialsError() from exc

    async def _current_user(self, token: Optional[str]) -> User:
        user_id = self._verify_token(token)
        user = await self.store.find_by_id(user_id)
        if user is None:
            logger.info("Token refers to missing user %s", user_id)
            raise InvalidCredentialsError()
        return user

    # ── operations ─────────────────────────────────────────────────────

    @_operation
    async def authenticate(self, email: Optional[str], password: Optional[str]) -> str:
        """Check email + password and issue an access token."""
        if not email or not password:
            raise MissingFieldsError()

        try:
            user = await self.store.find_by_email(email)
        except StoreError as exc:
            # A failed lookup looks exactly like an unknown account.
            logger.warning("Login lookup failed, treating as unknown account: %s", exc)
            user = None

        if user is None or not await self._password_matches(password, user):
            raise InvalidCredentialsError()

        token = self.signer.issue(user.id)
        logger.info("Login: %s", user.id)
        return token

    @_operation
    async def create(
        self,
        name: Optional[str],
        email: Optional[str],
        password: Optional[str],
    ) -> str:
        """Register a new account and return its id."""
        if not email or not password:
            raise MissingFieldsError()
        if password_too_long(password):
            raise InvalidFieldsError(f"Password longer than {MAX_PASSWORD_BYTES} bytes")

        password_hash = await asyncio.to_thread(hash_password, password, self.bcrypt_rounds)
        user = await self.store.create(
            User(email=email, name=name or DEFAULT_NAME, password_hash=password_hash)
        )
        logger.info("Registered user %s", user.id)
        return user.id

    @_operation
    async def read(self, token: Optional[str]) -> Dict[str, str]:
        """Return the caller's profile (name and email only)."""
        user = await self._current_user(token)
        return user.public_view()

    @_operation
    async def update(
        self,
        token: Optional[str],
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Dict[str, str]:
        """Apply the supplied fields and return the committed profile."""
        user = await self._current_user(token)

        changes = {}
        if name:
            changes["name"] = name
        if email:
            changes["email"] = email

        if changes:
            try:
                await self.store.save(user.model_copy(update=changes))
            except RecordNotFoundError as exc:
                raise InvalidCredentialsError() from exc
            logger.info("Updated user %s (%s)", user.id, ", ".join(sorted(changes)))

        refreshed = await self.store.find_by_id(user.id)
        if refreshed is None:
            raise InvalidCredentialsError()
        return refreshed.public_view()

    @_operation
    async def delete(
        self,
        token: Optional[str],
        email: Optional[str],
        password: Optional[str],
    ) -> None:
        """Remove the account after re-checking email + password."""
        if not token or not email or not password:
            raise MissingFieldsError()

        user = await self._current_user(token)
        if user.email != normalize_email(email) or not await self._password_matches(password, user):
            raise InvalidCredentialsError()

        if not await self.store.delete_by_id(user.id):
            raise InvalidCredentialsError()
        logger.info("Deleted user %s", user.id)
