"""Liveness endpoint."""

from fastapi import APIRouter

from maib_gateway.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {"status": "ok", "mode": settings.maib_mode.value, "mock": settings.maib_use_mock}
