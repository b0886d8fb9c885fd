# ============================================================================
# HEALTH CHECK EXECUTOR
# ============================================================================
# STATUS: Infrastructure - Concurrent check execution
# PURPOSE: Run health checks with per-check timeouts
# CREATED: 12 OCT 2026
# ============================================================================
"""
Health Check Executor

Runs checks concurrently. A check that times out or raises is reported
unhealthy; it never fails the probe request itself.
"""

import asyncio
import logging
import time
from typing import List, Sequence

from health.core import AggregatedHealthResult, HealthCheck, HealthCheckResult, HealthStatus

logger = logging.getLogger(__name__)


class HealthCheckExecutor:
    """Executes a fixed set of health checks."""

    def __init__(self, checks: Sequence[HealthCheck]):
        self.checks: List[HealthCheck] = list(checks)

    async def execute_all(self) -> AggregatedHealthResult:
        return await self._execute(self.checks)

    async def execute_required(self) -> AggregatedHealthResult:
        return await self._execute([c for c in self.checks if c.required_for_ready])

    async def _execute(self, checks: List[HealthCheck]) -> AggregatedHealthResult:
        start_time = time.monotonic()
        results = await asyncio.gather(*(self._execute_check(c) for c in checks))
        by_name = {check.name: result for check, result in zip(checks, results)}

        return AggregatedHealthResult(
            status=HealthStatus.aggregate([r.status for r in results]),
            checks=by_name,
            total_duration_ms=(time.monotonic() - start_time) * 1000,
        )

    async def _execute_check(self, check: HealthCheck) -> HealthCheckResult:
        """Execute a single check with timeout."""
        start_time = time.monotonic()

        try:
            result = await asyncio.wait_for(check.check(), timeout=check.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"Health check {check.name} timed out after {check.timeout_seconds}s")
            result = HealthCheckResult.unhealthy(f"Timeout after {check.timeout_seconds}s")
        except Exception as e:
            logger.error(f"Health check {check.name} failed: {e}")
            result = HealthCheckResult.from_exception(e)

        result.duration_ms = (time.monotonic() - start_time) * 1000
        logger.debug(
            f"Health check {check.name}: {result.status.value} ({result.duration_ms:.1f}ms)"
        )
        return result


__all__ = ["HealthCheckExecutor"]
