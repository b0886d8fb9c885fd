# ============================================================================
# API ROUTES
# ============================================================================
# STATUS: Core - FastAPI route definitions
# PURPOSE: Operator control surface for ingest and initial sync
# CREATED: 12 OCT 2026
# ============================================================================
"""
API Routes

Control endpoints of the delta consumer. They are meant for operators and
debugging; the timer loop drives ingest on its own.
"""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from core.errors import ConsumerError
from orchestrator.scheduler import IngestOutcome, IngestScheduler
from .schemas import (
    CleanupResponse,
    ErrorResponse,
    IngestMetrics,
    IngestResponse,
    IngestStatusResponse,
    MessageResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================
# Set by the main app at startup

_scheduler = None


def set_services(scheduler: IngestScheduler) -> None:
    """Set service instances for dependency injection."""
    global _scheduler
    _scheduler = scheduler


def get_scheduler() -> IngestScheduler:
    if _scheduler is None:
        raise HTTPException(500, "Scheduler not initialized")
    return _scheduler


_INGEST_RESPONSES = {
    IngestOutcome.STARTED: (202, "Started ingesting delta files"),
    IngestOutcome.NOTHING_PENDING: (200, "No scheduled sync task found"),
    IngestOutcome.ALREADY_RUNNING: (409, "A sync task is already running"),
    IngestOutcome.FAILED: (500, "Sync task could not be started"),
}


# ============================================================================
# INGEST
# ============================================================================

@router.post(
    "/ingest",
    response_model=IngestResponse,
    status_code=202,
    tags=["Ingest"],
    responses={
        200: {"model": IngestResponse, "description": "Nothing pending"},
        409: {"model": IngestResponse, "description": "A sync task is already running"},
        500: {"model": ErrorResponse, "description": "Producer or store failure"},
    },
)
async def trigger_ingest():
    """
    Schedule a sync task and start consuming delta files.

    Returns 202 as soon as the task runs in the background; consumption
    itself is not awaited.
    """
    scheduler = get_scheduler()

    try:
        outcome = await scheduler.trigger_ingest()
    except ConsumerError as e:
        logger.exception(f"Error triggering ingest: {e}")
        raise HTTPException(500, "Ingest failed, see error records")

    status_code, message = _INGEST_RESPONSES[outcome]
    return JSONResponse(
        status_code=status_code,
        content=IngestResponse(outcome=outcome.value, msg=message).model_dump(),
    )


@router.get("/ingest/status", response_model=IngestStatusResponse, tags=["Ingest"])
async def get_ingest_status():
    """
    Get scheduler status and statistics.

    Returns:
    - Running and ingesting state
    - Uptime and current delay until the next trigger
    - Task counters and the last watermark reached
    """
    stats = get_scheduler().stats

    return IngestStatusResponse(
        status="running" if stats["running"] else "stopped",
        booting=stats.get("booting", False),
        ingesting=stats["ingesting"],
        initial_sync_running=stats["initial_sync_running"],
        started_at=stats["started_at"],
        uptime_seconds=stats["uptime_seconds"],
        interval_ms=stats["interval_ms"],
        next_delay_seconds=stats["next_delay_seconds"],
        last_watermark=stats["last_watermark"],
        metrics=IngestMetrics(
            cycles=stats["cycles"],
            last_cycle_at=stats["last_cycle_at"],
            last_outcome=stats["last_outcome"],
            tasks_started=stats["tasks_started"],
            tasks_succeeded=stats["tasks_succeeded"],
            tasks_failed=stats["tasks_failed"],
            consecutive_failures=stats["consecutive_failures"],
            errors=stats["errors"],
        ),
    )


# ============================================================================
# INITIAL SYNC
# ============================================================================

@router.post(
    "/initial-sync-jobs",
    response_model=MessageResponse,
    status_code=202,
    tags=["Initial Sync"],
    responses={409: {"model": ErrorResponse, "description": "Initial sync already running"}},
)
async def start_initial_sync():
    """Run an initial sync in the background."""
    if not get_scheduler().start_initial_sync():
        raise HTTPException(409, "An initial sync job is already running")
    return MessageResponse(msg="Started initial sync job")


@router.delete("/initial-sync-jobs", response_model=CleanupResponse, tags=["Initial Sync"])
async def cleanup_initial_sync_jobs():
    """Remove every initial-sync job and its tasks so boot can run it again."""
    try:
        count = await get_scheduler().cleanup_initial_sync_jobs()
    except ConsumerError as e:
        logger.exception(f"Error cleaning initial sync jobs: {e}")
        raise HTTPException(500, "Cleanup failed")

    return CleanupResponse(msg="Initial sync jobs cleaned", jobs_removed=count)


__all__ = ["router", "set_services"]
