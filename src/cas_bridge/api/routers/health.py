"""
cas_bridge.api.routers.health

Liveness endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    # Liveness only: the registry is loaded lazily, so the IDP is not probed here.
    return {"status": "ok"}
