"""
Health check endpoints.

- /health and /health/live: the process is up
- /ready: the configuration source answers and provider clients are registered
"""

from datetime import datetime, timezone
from typing import Optional
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from model_gateway import __version__
from model_gateway.application import get_provider_registry
from model_gateway.core.config import settings
from model_gateway.db.session import ping_database

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str


class ComponentHealth(BaseModel):
    status: str  # "healthy", "unhealthy", "skipped"
    latency_ms: Optional[float] = None
    message: Optional[str] = None


async def check_database() -> ComponentHealth:
    """SELECT 1 on the gateway database (only read with config_source=database)."""
    if settings.config_source != "database":
        return ComponentHealth(status="skipped", message=f"config_source={settings.config_source}")

    try:
        latency = await ping_database()
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return ComponentHealth(
            status="unhealthy",
            message=f"Database connection failed: {str(e)[:100]}",
        )
    return ComponentHealth(status="healthy", latency_ms=round(latency, 2))


def check_providers() -> ComponentHealth:
    providers = get_provider_registry().providers()
    if not providers:
        return ComponentHealth(status="unhealthy", message="No provider client registered")
    message = ", ".join(p.value for p in providers)
    if settings.mock_providers:
        message = f"mock ({message})"
    return ComponentHealth(status="healthy", message=message)


@router.get("/health", summary="Basic health check", tags=["Health"])
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
    )


@router.get("/health/live", summary="Kubernetes liveness probe", tags=["Health"])
async def liveness_probe():
    return {"status": "alive"}


@router.get(
    "/ready",
    summary="Readiness probe",
    description="Returns 503 when the database (config_source=database) is unreachable "
    "or no provider client is registered.",
    tags=["Health"],
)
async def readiness_probe():
    checks = {
        "database": await check_database(),
        "providers": check_providers(),
    }
    ready = all(check.status != "unhealthy" for check in checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={
            "status": "ready" if ready else "not_ready",
            "config_source": settings.config_source,
            "checks": {name: check.model_dump() for name, check in checks.items()},
        },
    )
