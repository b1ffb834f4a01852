"""Health check endpoints.

Provides Kubernetes-compatible liveness and readiness probes:
- /health/live  - Liveness probe (always returns OK if process is running)
- /health/ready - Readiness probe (checks the media blob store answers)
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from stack.api.deps import get_media_storage
from stack.media.storage import MediaStorage

router = APIRouter(tags=["health"])

# Key that is never written; a NotFound answer proves the backend is reachable
PROBE_KEY = ".stack-health-probe.txt"


class HealthStatus(str, Enum):
    """Health check status."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of a single component."""

    name: str
    status: HealthStatus
    latency_ms: float
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON response."""
        result: dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
        }
        if self.message:
            result["message"] = self.message
        return result


def check_storage(storage: MediaStorage) -> ComponentHealth:
    """Check the blob store answers a metadata request."""
    start = time.monotonic()
    try:
        storage.store.exists(PROBE_KEY)
    except OSError as e:
        return ComponentHealth(
            name=storage.store.storage_type,
            status=HealthStatus.UNHEALTHY,
            latency_ms=(time.monotonic() - start) * 1000,
            message=str(e),
        )
    return ComponentHealth(
        name=storage.store.storage_type,
        status=HealthStatus.HEALTHY,
        latency_ms=(time.monotonic() - start) * 1000,
    )


@router.get("/health/live")
def liveness() -> dict[str, str]:
    """Liveness probe."""
    return {"status": HealthStatus.HEALTHY.value}


@router.get("/health/ready")
def readiness(storage: MediaStorage = Depends(get_media_storage)) -> JSONResponse:
    """Readiness probe.

    Returns 200 when the blob store is reachable, 503 otherwise.
    """
    component = check_storage(storage)
    healthy = component.status == HealthStatus.HEALTHY
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": component.status.value,
            "checks": {"storage": component.to_dict()},
        },
    )
