"""
FastAPI dependencies for authentication.

Provides ``get_handler`` (the app-wide ``CredentialHandler``) and
``get_access_token`` (the raw token from the request headers).
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, Request

from auth.handler import CredentialHandler


def get_handler(request: Request) -> CredentialHandler:
    """Return the handler built by ``create_app``."""
    return request.app.state.handler


async def get_access_token(
    x_access_token: Optional[str] = Header(None, alias="x-access-token"),
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> Optional[str]:
    """
    Read the token from ``x-access-token``, falling back to an
    ``Authorization: Bearer`` header.  Returns ``None`` when neither is set;
    the handler turns that into ``missing_fields``.
    """
    if x_access_token:
        return x_access_token
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:]
    return None
