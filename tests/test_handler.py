"""
Tests for the credential handler against the in-memory store.
"""

import asyncio
import time
from unittest.mock import AsyncMock, MagicMock

import pytest

from auth.errors import (
    DuplicateEmailError,
    InternalError,
    InvalidCredentialsError,
    InvalidFieldsError,
    MissingFieldsError,
    RecordNotFoundError,
    StoreError,
)
from auth.handler import CredentialHandler


async def _signup_and_login(handler, email="a@b.com", password="secret1", name=None) -> str:
    await handler.create(name, email, password)
    return await handler.authenticate(email, password)


# ── authenticate ───────────────────────────────────────────────────────────────


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_token_is_bound_to_created_user(self, handler, store, signer):
        user_id = await handler.create("Ann", "a@b.com", "secret1")
        token = await handler.authenticate("a@b.com", "secret1")
        assert signer.verify(token) == user_id
        assert (await store.find_by_email("a@b.com")).id == user_id

    @pytest.mark.asyncio
    async def test_email_lookup_is_case_insensitive(self, handler):
        await handler.create(None, "Ann@B.com", "secret1")
        assert await handler.authenticate("  ann@b.COM ", "secret1")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email,password", [(None, "x"), ("a@b.com", None), ("", "")])
    async def test_missing_fields(self, handler, email, password):
        with pytest.raises(MissingFieldsError):
            await handler.authenticate(email, password)

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_identical(self, handler):
        await handler.create(None, "a@b.com", "secret1")

        with pytest.raises(InvalidCredentialsError) as wrong_password:
            await handler.authenticate("a@b.com", "nope")
        with pytest.raises(InvalidCredentialsError) as unknown_email:
            await handler.authenticate("who@b.com", "secret1")

        assert wrong_password.value.to_dict() == unknown_email.value.to_dict()
        assert wrong_password.value.status_code == unknown_email.value.status_code == 403

    @pytest.mark.asyncio
    async def test_store_failure_is_treated_as_unknown_account(self, signer):
        store = MagicMock()
        store.find_by_email = AsyncMock(side_effect=StoreError("connection reset"))
        handler = CredentialHandler(store, signer, bcrypt_rounds=4)

        with pytest.raises(InvalidCredentialsError):
            await handler.authenticate("a@b.com", "secret1")

    @pytest.mark.asyncio
    async def test_signing_failure_is_internal(self, handler, signer, monkeypatch):
        await handler.create(None, "a@b.com", "secret1")
        monkeypatch.setattr(signer, "issue", MagicMock(side_effect=RuntimeError("hsm down")))

        with pytest.raises(InternalError) as exc_info:
            await handler.authenticate("a@b.com", "secret1")
        assert "hsm" not in exc_info.value.message


# ── create ─────────────────────────────────────────────────────────────────────


class TestCreate:
    @pytest.mark.asyncio
    async def test_password_is_hashed_and_name_defaults(self, handler, store):
        await handler.create(None, " A@B.com ", "secret1")
        user = await store.find_by_email("a@b.com")
        assert user.email == "a@b.com"
        assert user.name == "No Name"
        assert user.password_hash and user.password_hash != "secret1"

    @pytest.mark.asyncio
    async def test_duplicate_email_any_case(self, handler):
        await handler.create(None, "A@x.com", "secret1")
        with pytest.raises(DuplicateEmailError):
            await handler.create(None, "a@x.com", "other")

    @pytest.mark.asyncio
    async def test_missing_email_or_password(self, handler):
        with pytest.raises(MissingFieldsError):
            await handler.create("Ann", None, "secret1")
        with pytest.raises(MissingFieldsError):
            await handler.create("Ann", "a@b.com", "")

    @pytest.mark.asyncio
    async def test_invalid_email(self, handler, store):
        with pytest.raises(InvalidFieldsError):
            await handler.create(None, "not-an-email", "secret1")
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_over_long_password(self, handler, store):
        with pytest.raises(InvalidFieldsError, match="72 bytes"):
            await handler.create(None, "a@b.com", "x" * 100)
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_unexpected_store_failure_is_internal(self, signer):
        store = MagicMock()
        store.create = AsyncMock(side_effect=StoreError("disk full"))
        handler = CredentialHandler(store, signer, bcrypt_rounds=4)

        with pytest.raises(InternalError) as exc_info:
            await handler.create(None, "a@b.com", "secret1")
        assert exc_info.value.to_dict() == {
            "error": "internal",
            "message": "Internal server error",
        }

    @pytest.mark.asyncio
    async def test_concurrent_creates_yield_one_account(self, handler, store):
        results = await asyncio.gather(
            handler.create(None, "a@b.com", "one"),
            handler.create(None, "A@B.com", "two"),
            return_exceptions=True,
        )
        assert sum(isinstance(r, DuplicateEmailError) for r in results) == 1
        assert len(store) == 1


# ── read ───────────────────────────────────────────────────────────────────────


class TestRead:
    @pytest.mark.asyncio
    async def test_returns_name_and_email_only(self, handler):
        token = await _signup_and_login(handler)
        profile = await handler.read(token)
        assert profile == {"name": "No Name", "email": "a@b.com"}

    @pytest.mark.asyncio
    async def test_missing_token(self, handler):
        with pytest.raises(MissingFieldsError):
            await handler.read(None)

    @pytest.mark.asyncio
    async def test_tampered_token(self, handler):
        token = await _signup_and_login(handler)
        with pytest.raises(InvalidCredentialsError):
            await handler.read(token[:-1] + ("0" if token[-1] != "0" else "1"))

    @pytest.mark.asyncio
    async def test_expired_token(self, handler, store, signer):
        user_id = await handler.create(None, "a@b.com", "secret1")
        token = signer.issue(user_id, now=time.time() - 2 * 86400)
        with pytest.raises(InvalidCredentialsError):
            await handler.read(token)

    @pytest.mark.asyncio
    async def test_token_for_deleted_user(self, handler, store):
        token = await _signup_and_login(handler)
        user = await store.find_by_email("a@b.com")
        await store.delete_by_id(user.id)
        with pytest.raises(InvalidCredentialsError):
            await handler.read(token)

    @pytest.mark.asyncio
    async def test_unexpected_verification_failure_is_internal(self, handler, signer, monkeypatch):
        token = await _signup_and_login(handler)
        monkeypatch.setattr(signer, "verify", MagicMock(side_effect=RuntimeError("clock skew")))
        with pytest.raises(InternalError) as exc_info:
            await handler.read(token)
        assert "clock" not in exc_info.value.message


# ── update ─────────────────────────────────────────────────────────────────────


class TestUpdate:
    @pytest.mark.asyncio
    async def test_name_only_keeps_email(self, handler):
        token = await _signup_and_login(handler)
        assert await handler.update(token, name="Ann") == {"name": "Ann", "email": "a@b.com"}

    @pytest.mark.asyncio
    async def test_email_only_keeps_name(self, handler):
        token = await _signup_and_login(handler, name="Ann")
        assert await handler.update(token, email="ann@c.com") == {
            "name": "Ann",
            "email": "ann@c.com",
        }
        assert await handler.authenticate("ann@c.com", "secret1")

    @pytest.mark.asyncio
    async def test_same_update_twice_is_stable(self, handler):
        token = await _signup_and_login(handler)
        first = await handler.update(token, name="Ann", email="ann@c.com")
        second = await handler.update(token, name="Ann", email="ann@c.com")
        assert first == second

    @pytest.mark.asyncio
    async def test_returns_committed_values(self, handler):
        token = await _signup_and_login(handler)
        assert await handler.update(token, name="  Ann  ", email=" ANN@C.com ") == {
            "name": "Ann",
            "email": "ann@c.com",
        }

    @pytest.mark.asyncio
    async def test_no_fields_returns_current_profile(self, handler):
        token = await _signup_and_login(handler)
        assert await handler.update(token) == {"name": "No Name", "email": "a@b.com"}

    @pytest.mark.asyncio
    async def test_duplicate_email(self, handler, store):
        await handler.create(None, "taken@b.com", "secret1")
        token = await _signup_and_login(handler)
        with pytest.raises(DuplicateEmailError):
            await handler.update(token, email="TAKEN@b.com")
        assert (await handler.read(token))["email"] == "a@b.com"

    @pytest.mark.asyncio
    async def test_requires_token(self, handler):
        with pytest.raises(MissingFieldsError):
            await handler.update(None, name="Ann")

    @pytest.mark.asyncio
    async def test_invalid_email_keeps_record(self, handler):
        token = await _signup_and_login(handler)
        with pytest.raises(InvalidFieldsError):
            await handler.update(token, email="not-an-email")
        assert (await handler.read(token))["email"] == "a@b.com"

    @pytest.mark.asyncio
    async def test_record_deleted_during_update(self, handler, store, monkeypatch):
        token = await _signup_and_login(handler)
        monkeypatch.setattr(store, "save", AsyncMock(side_effect=RecordNotFoundError("gone")))
        with pytest.raises(InvalidCredentialsError):
            await handler.update(token, name="Ann")


# ── delete ─────────────────────────────────────────────────────────────────────


class TestDelete:
    @pytest.mark.asyncio
    async def test_wrong_password_keeps_record(self, handler, store):
        token = await _signup_and_login(handler)
        with pytest.raises(InvalidCredentialsError) as exc_info:
            await handler.delete(token, "a@b.com", "wrong")
        assert exc_info.value.status_code == 403
        assert await store.find_by_email("a@b.com") is not None

    @pytest.mark.asyncio
    async def test_other_email_rejected(self, handler, store):
        await handler.create(None, "other@b.com", "secret1")
        token = await _signup_and_login(handler)
        with pytest.raises(InvalidCredentialsError):
            await handler.delete(token, "other@b.com", "secret1")
        assert len(store) == 2

    @pytest.mark.asyncio
    async def test_matching_credentials_remove_record(self, handler, store, signer):
        token = await _signup_and_login(handler)
        user_id = signer.verify(token)
        await handler.delete(token, "A@B.com", "secret1")
        assert await store.find_by_id(user_id) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email,password", [(None, "secret1"), ("a@b.com", None)])
    async def test_missing_fields(self, handler, email, password):
        token = await _signup_and_login(handler)
        with pytest.raises(MissingFieldsError):
            await handler.delete(token, email, password)


# ── end to end ─────────────────────────────────────────────────────────────────


class TestAccountLifecycle:
    @pytest.mark.asyncio
    async def test_full_lifecycle(self, handler):
        await handler.create(None, "a@b.com", "secret1")
        token = await handler.authenticate("a@b.com", "secret1")
        assert await handler.read(token) == {"name": "No Name", "email": "a@b.com"}
        assert await handler.update(token, name="Ann") == {"name": "Ann", "email": "a@b.com"}
        await handler.delete(token, "a@b.com", "secret1")
        with pytest.raises(InvalidCredentialsError):
            await handler.authenticate("a@b.com", "secret1")
