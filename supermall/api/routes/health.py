"""
Health Check Endpoints
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from supermall.api.dependencies import get_context
from supermall.context import AppContext

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    backend: str
    timestamp: datetime
    checks: Dict[str, Any]


@router.get("/health", response_model=HealthResponse)
async def health_check(ctx: AppContext = Depends(get_context)) -> HealthResponse:
    """
    Report application and storage status.

    Running on the local fallback is reported as healthy: the backend is
    chosen once at startup and stays fixed.
    """
    checks: Dict[str, Any] = {}
    overall_status = "healthy"

    try:
        storage = await ctx.gateway.health()
        checks["storage"] = storage
        if storage.get("status") != "healthy":
            overall_status = "degraded"
    except Exception as e:
        checks["storage"] = {"status": "unhealthy", "error": str(e)}
        overall_status = "unhealthy"

    return HealthResponse(
        status=overall_status,
        version=ctx.settings.version,
        environment=ctx.settings.app_env,
        backend=ctx.gateway.backend,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """Returns 200 if the application is running."""
    return {"status": "alive"}
