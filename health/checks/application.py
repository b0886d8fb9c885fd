# ============================================================================
# APPLICATION HEALTH CHECKS
# ============================================================================
# STATUS: Infrastructure - Application state checks
# PURPOSE: Scheduler loop state and scratch directory availability
# CREATED: 12 OCT 2026
# ============================================================================
"""
Application Health Checks

- SchedulerCheck: timer loop running, degraded after repeated failures
- ScratchDirCheck: scratch directory writable
"""

import logging
import os
from pathlib import Path

from health.core import HealthCheck, HealthCheckResult
from orchestrator.scheduler import IngestScheduler

logger = logging.getLogger(__name__)


class SchedulerCheck(HealthCheck):
    """
    Ingest scheduler health check.

    Not required for readiness: the control endpoints must stay reachable
    when boot left the loop stopped, so operators can reset and retry.
    """

    name = "scheduler"
    timeout_seconds = 2.0
    required_for_ready = False

    def __init__(self, scheduler: IngestScheduler, disabled: bool = False):
        self.scheduler = scheduler
        self.disabled = disabled

    async def check(self) -> HealthCheckResult:
        if self.disabled:
            return HealthCheckResult.healthy(message="Delta ingest disabled (skipped)")

        stats = self.scheduler.stats
        details = {
            "ingesting": stats["ingesting"],
            "consecutive_failures": stats["consecutive_failures"],
            "last_outcome": stats["last_outcome"],
        }

        if stats.get("booting"):
            return HealthCheckResult.degraded("Boot in progress", **details)
        if not stats["running"]:
            return HealthCheckResult.unhealthy("Ingest timer loop not running", **details)
        if stats["consecutive_failures"] > 0:
            return HealthCheckResult.degraded(
                f"{stats['consecutive_failures']} consecutive failed sync tasks", **details
            )
        return HealthCheckResult.healthy(**details)


class ScratchDirCheck(HealthCheck):
    """Scratch directory exists (or can be created) and is writable."""

    name = "scratch_dir"
    timeout_seconds = 2.0
    required_for_ready = True

    def __init__(self, scratch_dir: Path):
        self.scratch_dir = Path(scratch_dir)

    async def check(self) -> HealthCheckResult:
        try:
            self.scratch_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return HealthCheckResult.unhealthy(f"Cannot create scratch dir: {e}", path=str(self.scratch_dir))

        if not os.access(self.scratch_dir, os.W_OK):
            return HealthCheckResult.unhealthy("Scratch dir not writable", path=str(self.scratch_dir))
        return HealthCheckResult.healthy(path=str(self.scratch_dir))


__all__ = ["SchedulerCheck", "ScratchDirCheck"]
