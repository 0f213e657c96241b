"""
Service routes (status probe).
"""

from __future__ import annotations

from fastapi import APIRouter, Response

router = APIRouter(tags=["monitoring"])


@router.get("/status")
async def status() -> Response:
    """Fixed success signal, no body."""
    return Response(status_code=200)
