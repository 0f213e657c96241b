"""
Password hashing and verification.

Uses bcrypt for password hashing with automatic salting and a
configurable work factor (``config.bcrypt_rounds``).  bcrypt only reads
the first 72 bytes of its input, so longer passwords are refused rather
than silently truncated.
"""

from __future__ import annotations

import bcrypt

DEFAULT_ROUNDS = 8
MAX_PASSWORD_BYTES = 72


def password_too_long(password: str) -> bool:
    return len(password.encode()) > MAX_PASSWORD_BYTES


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a password with bcrypt (auto-salted)."""
    if password_too_long(password):
        raise ValueError(f"password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time comparison against a bcrypt hash.

    An empty or malformed hash, or an over-long password, never verifies.
    """
    if not password_hash or password_too_long(password):
        return False
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except (ValueError, TypeError):
        return False
