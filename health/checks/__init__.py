# ============================================================================
# HEALTH CHECKS
# ============================================================================
# STATUS: Infrastructure - Health check implementations
# PURPOSE: Concrete checks for the delta consumer
# CREATED: 12 OCT 2026
# ============================================================================
"""
Health Checks

- triple_store: SPARQL endpoint answering (required for ready)
- scratch_dir: scratch directory writable (required for ready)
- scheduler: ingest timer loop running (reported by /health only)
"""

from health.checks.store import StoreCheck
from health.checks.application import SchedulerCheck, ScratchDirCheck

__all__ = [
    "StoreCheck",
    "SchedulerCheck",
    "ScratchDirCheck",
]
