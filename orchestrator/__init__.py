# ============================================================================
# ORCHESTRATOR MODULE
# ============================================================================
# STATUS: Core - Ingest scheduling
# PURPOSE: Boot policy, timer loop and single-flight sync task control
# CREATED: 11 OCT 2026
# ============================================================================
"""
Orchestrator Module

Usage:
    from orchestrator import IngestScheduler

    scheduler = IngestScheduler(config.ingest, job_repo, sync_repo, consumer, producer, initial_sync)
    await scheduler.boot()  # Initial sync, recovery, timer loop
"""

from .scheduler import IngestScheduler, IngestOutcome

__all__ = ["IngestScheduler", "IngestOutcome"]
