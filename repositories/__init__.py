# ============================================================================
# REPOSITORIES MODULE
# ============================================================================
# STATUS: Core - Triple store bookkeeping layer
# PURPOSE: Read/write jobs, tasks, errors and sync tasks
# CREATED: 09 OCT 2026
# ============================================================================
"""
Repositories Module

Every repository receives the store capability explicitly.

Usage:
    from repositories import JobRepository, SyncTaskRepository

    job_repo = JobRepository(store, config.store.jobs_graph, config.ingest.job_creator_uri)
    job = await job_repo.create_job(config.ingest.initial_sync_job_operation)
"""

from .job_repo import JobRepository
from .sync_task_repo import SyncTaskRepository

__all__ = [
    "JobRepository",
    "SyncTaskRepository",
]
