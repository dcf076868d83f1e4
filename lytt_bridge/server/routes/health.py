"""Health check endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

import lytt_bridge

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, Any]:
    """Liveness check. Independent of configuration and the upstream API."""
    return {
        "ok": True,
        "service": lytt_bridge.SERVICE_NAME,
        "version": lytt_bridge.__version__,
    }
