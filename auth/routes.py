"""
Account API routes — login, signup, me, update, delete.

Route prefix: /v1
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from auth.dependencies import get_access_token, get_handler
from auth.handler import CredentialHandler

router = APIRouter(tags=["accounts"])


# ── Request / response schemas ─────────────────────────────────────────
# Fields (and the bodies themselves) are optional so that absent input
# reaches the handler and comes back as ``missing_fields`` instead of a
# validation error.


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class SignupRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class UpdateRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class DeleteRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class TokenResponse(BaseModel):
    access_token: str = Field(..., serialization_alias="accessToken")


class ProfileResponse(BaseModel):
    name: str
    email: str


class SuccessResponse(BaseModel):
    success: bool = True


# ── Endpoints ──────────────────────────────────────────────────────────


@router.post("/login", response_model=TokenResponse, response_model_by_alias=True)
async def login(
    req: Optional[LoginRequest] = None,
    handler: CredentialHandler = Depends(get_handler),
) -> Dict[str, Any]:
    """Login with email + password."""
    req = req or LoginRequest()
    token = await handler.authenticate(req.email, req.password)
    return {"access_token": token}


@router.post("/signup", response_model=SuccessResponse)
async def signup(
    req: Optional[SignupRequest] = None,
    handler: CredentialHandler = Depends(get_handler),
) -> Dict[str, Any]:
    """Register a new user."""
    req = req or SignupRequest()
    await handler.create(req.name, req.email, req.password)
    return {"success": True}


@router.api_route("/me", methods=["GET", "POST"], response_model=ProfileResponse)
async def me(
    token: Optional[str] = Depends(get_access_token),
    handler: CredentialHandler = Depends(get_handler),
) -> Dict[str, Any]:
    return await handler.read(token)


@router.post("/update", response_model=ProfileResponse)
async def update(
    req: Optional[UpdateRequest] = None,
    token: Optional[str] = Depends(get_access_token),
    handler: CredentialHandler = Depends(get_handler),
) -> Dict[str, Any]:
    """Partial profile update; returns the stored profile."""
    req = req or UpdateRequest()
    return await handler.update(token, name=req.name, email=req.email)


@router.post("/delete", response_model=SuccessResponse)
async def delete(
    req: Optional[DeleteRequest] = None,
    token: Optional[str] = Depends(get_access_token),
    handler: CredentialHandler = Depends(get_handler),
) -> Dict[str, Any]:
    """Delete the account; email + password must be re-supplied."""
    req = req or DeleteRequest()
    await handler.delete(token, req.email, req.password)
    return {"success": True}
