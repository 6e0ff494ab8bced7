"""Health check endpoints."""

from typing import Any, Dict

from fastapi import APIRouter, Request

from chefgenius.config import settings
from chefgenius.middleware.performance import metrics

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check() -> Dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def readiness_check(request: Request) -> Dict[str, Any]:
    """
    Readiness check.

    Ready once the kitchen session exists. ``gemini_configured`` is informational:
    the service starts without a key and only generation calls fail.
    """
    kitchen = getattr(request.app.state, "kitchen", None)
    return {
        "status": "ready" if kitchen is not None else "starting",
        "gemini_configured": bool(settings.gemini_api_key),
        "storage_path": settings.storage_path,
    }


@router.get("/metrics")
async def performance_metrics() -> Dict[str, Any]:
    return {"status": "ok", **metrics.get_summary()}
