# ============================================================================
# HEALTH CHECK MODULE
# ============================================================================
# STATUS: Infrastructure - Health checks
# PURPOSE: Kubernetes probes and health monitoring
# CREATED: 12 OCT 2026
# ============================================================================
"""
Health Check Module

- /livez: Process alive (instant, for Kubernetes liveness probe)
- /readyz: Triple store reachable and scratch dir writable
- /health: Every check, including scheduler state

Usage:
    from health import health_router, set_health_checks
    from health.checks import StoreCheck

    set_health_checks([StoreCheck(store)])
    app.include_router(health_router)
"""

from health.core import (
    HealthStatus,
    HealthCheckResult,
    AggregatedHealthResult,
    HealthCheck,
)
from health.executor import HealthCheckExecutor
from health.router import health_router, set_health_checks

__all__ = [
    "HealthStatus",
    "HealthCheckResult",
    "AggregatedHealthResult",
    "HealthCheck",
    "HealthCheckExecutor",
    "health_router",
    "set_health_checks",
]
