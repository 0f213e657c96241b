"""
Error taxonomy for account operations.

Every failure that reaches the API layer is an ``AccountError`` carrying a
machine-readable ``code``, the HTTP ``status_code`` it maps to and a short
human-readable ``message``.  Stores and the token signer raise their own
lower-level exceptions (``StoreError``, ``InvalidTokenError``) which the
credential handler translates at the operation boundary.
"""

from __future__ import annotations


class AccountError(Exception):
    code = "error"
    status_code = 500
    message = "Account operation failed"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class MissingFieldsError(AccountError):
    code = "missing_fields"
    status_code = 401
    message = "Missing fields"


class InvalidFieldsError(AccountError):
    code = "invalid_fields"
    status_code = 400
    message = "Invalid email address"


class InvalidCredentialsError(AccountError):
    code = "invalid_credentials"
    status_code = 403
    message = "Invalid credentials"


class DuplicateEmailError(AccountError):
    code = "duplicate_email"
    status_code = 403
    message = "A user with that email already exists"


class InternalError(AccountError):
    """Opaque failure; the cause is logged server-side, never returned."""

    code = "internal"
    status_code = 500
    message = "Internal server error"

    def __init__(self) -> None:
        super().__init__()


class StoreError(Exception):
    """Unexpected failure inside an account store backend."""


class InvalidTokenError(ValueError):
    """Malformed, tampered or expired access token."""


class RecordNotFoundError(StoreError):
    """The record addressed by id no longer exists."""
