"""
Signed access-token creation and verification.

Tokens are base64-encoded JSON payloads (``user_id`` + ``exp``) signed
with HMAC-SHA256.  Nothing is stored server-side: a token is valid as long
as its signature matches and ``exp`` lies in the future.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from base64 import b64decode, b64encode
from typing import Optional

from auth.errors import InvalidTokenError

DEFAULT_EXPIRY_SECONDS = 86400


class TokenSigner:
    """Issues and verifies access tokens with a single process-wide secret."""

    def __init__(self, secret: str, expiry_seconds: int = DEFAULT_EXPIRY_SECONDS) -> None:
        if not secret:
            raise ValueError("token secret must not be empty")
        self._secret = secret.encode()
        self.expiry_seconds = expiry_seconds

    def _sign(self, raw: bytes) -> str:
        return hmac.new(self._secret, raw, hashlib.sha256).hexdigest()

    def issue(self, user_id: str, now: Optional[float] = None) -> str:
        """Create a signed token containing ``user_id`` and expiry."""
        issued_at = time.time() if now is None else now
        payload = {
            "user_id": user_id,
            "exp": int(issued_at) + self.expiry_seconds,
        }
        raw = json.dumps(payload).encode()
        return b64encode(raw).decode() + "." + self._sign(raw)

    def verify(self, token: str, now: Optional[float] = None) -> str:
        """
        Verify token and return ``user_id``.

        Raises ``InvalidTokenError`` on malformed, tampered or expired tokens.
        """
        parts = token.split(".", 1)
        if len(parts) != 2:
            raise InvalidTokenError("bad format")
        try:
            raw = b64decode(parts[0], validate=True)
            signature_ok = hmac.compare_digest(parts[1], self._sign(raw))
        except (ValueError, TypeError) as exc:
            raise InvalidTokenError("bad format") from exc
        if not signature_ok:
            raise InvalidTokenError("bad signature")

        try:
            payload = json.loads(raw)
            user_id = payload["user_id"]
            exp = float(payload["exp"])
        except (ValueError, TypeError, KeyError) as exc:
            raise InvalidTokenError("bad payload") from exc

        current = time.time() if now is None else now
        if exp < current:
            raise InvalidTokenError("token expired")
        if not isinstance(user_id, str) or not user_id:
            raise InvalidTokenError("bad payload")
        return user_id
