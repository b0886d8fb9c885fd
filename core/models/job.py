# ============================================================================
# JOB / TASK / ERROR MODELS
# ============================================================================
# STATUS: Core model - Persisted work tracking
# PURPOSE: Generic job bookkeeping stored in the jobs graph
# CREATED: 06 OCT 2026
# ============================================================================
"""
Job Models

A Job groups one or more Tasks under an operation classifier. Both are
stored as resources in the jobs graph:

    <job>  a cogs:Job ; adms:status ... ; task:operation ... ; dct:creator ...
    <task> a task:Task ; dct:isPartOf <job> ; task:index "0" ; ...

ErrorRecords are append-only and optionally linked from a task through
task:error.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from core.contracts import JobStatus


class Job(BaseModel):
    """
    A top-level unit of work.

    Lifecycle:
        1. Created with status=BUSY
        2. Transitions to SUCCESS or FAILED
        3. Deleted only by explicit cleanup
    """
    uri: str = Field(..., description="Resource URI in the jobs graph")
    id: Optional[str] = Field(default=None, description="mu:uuid")
    operation: str = Field(..., description="Operation kind URI")
    status: JobStatus = Field(default=JobStatus.BUSY)
    created: Optional[datetime] = None
    modified: Optional[datetime] = None
    creator: Optional[str] = None


class Task(BaseModel):
    """One ordered step within a Job."""
    uri: str
    id: Optional[str] = None
    job_uri: str = Field(..., description="Parent job (dct:isPartOf)")
    operation: str
    status: JobStatus = Field(default=JobStatus.SCHEDULED)
    index: str = Field(default="0")
    created: Optional[datetime] = None
    modified: Optional[datetime] = None


class ErrorRecord(BaseModel):
    """Operator-visible failure trail entry. Never mutated once stored."""
    uri: str
    id: str
    message: str
    task_uri: Optional[str] = None


__all__ = ["Job", "Task", "ErrorRecord"]
