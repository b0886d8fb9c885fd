# ============================================================================
# API SCHEMAS
# ============================================================================
# STATUS: Core - Response schemas
# PURPOSE: Pydantic models for the control surface
# CREATED: 12 OCT 2026
# ============================================================================
"""
API Schemas

Response models for the control surface. Responses are coarse on purpose:
failure detail lives in the ErrorRecords of the jobs graph.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Plain acknowledgement."""
    msg: str


class IngestResponse(BaseModel):
    """Result of POST /ingest."""
    outcome: str = Field(..., description="started, nothing_pending, already_running or failed")
    msg: str


class CleanupResponse(BaseModel):
    """Result of DELETE /initial-sync-jobs."""
    msg: str
    jobs_removed: int = Field(..., ge=0)


class IngestMetrics(BaseModel):
    cycles: int
    last_cycle_at: Optional[datetime] = None
    last_outcome: Optional[str] = None
    tasks_started: int
    tasks_succeeded: int
    tasks_failed: int
    consecutive_failures: int
    errors: int


class IngestStatusResponse(BaseModel):
    """Scheduler state for GET /ingest/status."""
    status: str = Field(..., description="running or stopped")
    booting: bool = False
    ingesting: bool
    initial_sync_running: bool
    started_at: Optional[datetime] = None
    uptime_seconds: Optional[float] = None
    interval_ms: int
    next_delay_seconds: float
    last_watermark: Optional[datetime] = None
    metrics: IngestMetrics


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str


__all__ = [
    "MessageResponse",
    "IngestResponse",
    "CleanupResponse",
    "IngestMetrics",
    "IngestStatusResponse",
    "ErrorResponse",
]
