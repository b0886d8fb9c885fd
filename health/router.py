# ============================================================================
# HEALTH CHECK ROUTER
# ============================================================================
# STATUS: Infrastructure - FastAPI health check endpoints
# PURPOSE: Kubernetes probes and health monitoring endpoints
# CREATED: 12 OCT 2026
# ============================================================================
"""
Health Check Router

Endpoints:
    GET /livez   - Liveness probe (is the process alive?)
    GET /readyz  - Readiness probe (required checks pass?)
    GET /health  - Full health status of every configured check

Response Codes:
    200 - Healthy
    206 - Degraded (partial content)
    503 - Unhealthy (service unavailable)
"""

import logging
from typing import List, Sequence

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from health.core import HealthCheck, HealthStatus
from health.executor import HealthCheckExecutor
from __version__ import __version__, BUILD_DATE

logger = logging.getLogger(__name__)

health_router = APIRouter(tags=["Health"])

# Set by the main app at startup
_checks: List[HealthCheck] = []


def set_health_checks(checks: Sequence[HealthCheck]) -> None:
    """Replace the checks run by /readyz and /health."""
    global _checks
    _checks = list(checks)


def _status_to_http_code(status: HealthStatus) -> int:
    return {
        HealthStatus.HEALTHY: 200,
        HealthStatus.DEGRADED: 206,
        HealthStatus.UNHEALTHY: 503,
    }[status]


@health_router.get("/livez")
async def liveness_probe():
    """Returns 200 while the process is responsive. No external checks."""
    return {"status": "alive", "version": __version__, "build_date": BUILD_DATE}


@health_router.get("/readyz")
async def readiness_probe():
    """
    Kubernetes readiness probe.

    Runs only the checks marked required_for_ready.
    """
    if not _checks:
        return {"status": "ready", "message": "No checks registered"}

    result = await HealthCheckExecutor(_checks).execute_required()

    if result.status == HealthStatus.UNHEALTHY:
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "checks": {
                    name: check.to_dict()
                    for name, check in result.checks.items()
                    if check.status == HealthStatus.UNHEALTHY
                },
                "total_duration_ms": round(result.total_duration_ms, 2),
            },
        )

    return {
        "status": "ready",
        "checks_passed": len(result.checks),
        "total_duration_ms": round(result.total_duration_ms, 2),
    }


@health_router.get("/health")
async def full_health_check():
    """Run every check and return detailed status."""
    if not _checks:
        return {"status": "healthy", "message": "No checks registered", "checks": {}}

    result = await HealthCheckExecutor(_checks).execute_all()

    body = result.to_dict()
    body["version"] = __version__
    body["build_date"] = BUILD_DATE
    return JSONResponse(status_code=_status_to_http_code(result.status), content=body)


__all__ = ["health_router", "set_health_checks"]
