"""Health check and metrics endpoints.

- /health/live  - Liveness probe (always OK while the process runs)
- /health/ready - Readiness probe (checks every fast store)
- /metrics      - Prometheus exposition
"""

from __future__ import annotations

import asyncio
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from tiercache.api.deps import get_services
from tiercache.observability.metrics import get_metrics

router = APIRouter(tags=["health"])


@router.get("/health/live")
async def live() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@router.get("/health/ready")
async def ready(request: Request) -> JSONResponse:
    """Readiness probe.

    Returns 200 when every fast store answers, 503 otherwise. The service
    still answers lookups with a dead cache, so this reports "degraded".
    """
    services = get_services(request)
    start = time.monotonic()
    try:
        healthy = await asyncio.wait_for(services.health_check(), timeout=5.0)
        message = None if healthy else "Cache check failed"
    except asyncio.TimeoutError:
        healthy = False
        message = "Cache check timed out"
    latency_ms = (time.monotonic() - start) * 1000

    component: dict[str, object] = {
        "name": "cache",
        "status": "healthy" if healthy else "unhealthy",
        "latency_ms": round(latency_ms, 2),
    }
    if message:
        component["message"] = message

    return JSONResponse(
        content={"status": "healthy" if healthy else "degraded", "components": [component]},
        status_code=200 if healthy else 503,
    )


@router.get("/metrics", response_class=Response, tags=["observability"])
async def get_prometheus_metrics() -> Response:
    """Return Prometheus metrics in exposition format."""
    return Response(
        content=get_metrics().generate_latest(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
