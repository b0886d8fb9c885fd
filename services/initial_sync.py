# ============================================================================
# INITIAL SYNC
# ============================================================================
# STATUS: Core - Bootstrap the target graph from the current dump
# PURPOSE: Job/task bookkeeping around the dump loader, watermark seeding
# CREATED: 10 OCT 2026
# ============================================================================
"""
Initial Sync

Runs once, before any delta is consumed:

1. Create a BUSY job (operation from INITIAL_SYNC_JOB_OPERATION)
2. Schedule its single initial-syncing task
3. Resolve the producer's current dump and load it
4. Seed the incremental watermark with a SUCCESS sync task whose
   ext:deltaUntil is the dump's issued timestamp
5. Mark the job SUCCESS

A missing dump is a failure, never "nothing to do". Any failure marks the
task failed with an ErrorRecord, marks the job failed and is re-raised as
InitialSyncFailed.
"""

import logging
from typing import Optional

from core.contracts import INITIAL_SYNC_TASK_OPERATION, JobStatus, SyncTaskStatus
from core.errors import InitialSyncFailed, NoDumpAvailable
from core.logging import log_context
from core.models import Job, RemoteDumpDescriptor, Task
from repositories.job_repo import JobRepository
from repositories.sync_task_repo import SyncTaskRepository
from services.dump_file import DumpFileLoader

logger = logging.getLogger(__name__)


class InitialSyncTask:
    """Executes the dump load for one initial-sync task."""

    def __init__(self, task: Task, job_repo: JobRepository, loader: DumpFileLoader):
        self.task = task
        self.job_repo = job_repo
        self.loader = loader
        self.dump: Optional[RemoteDumpDescriptor] = None

    @property
    def uri(self) -> str:
        return self.task.uri

    @property
    def status(self) -> JobStatus:
        return self.task.status

    async def _update_status(self, status: JobStatus) -> None:
        await self.job_repo.update_status(self.task.uri, status)
        self.task = self.task.model_copy(update={"status": status})

    async def execute(self) -> int:
        """
        Load the attached dump.

        Returns:
            Number of statements inserted

        Raises:
            NoDumpAvailable: no dump was attached
            DownloadError, ParseError, WriteError: from the loader
        """
        await self._update_status(JobStatus.BUSY)
        if self.dump is None:
            logger.warning("No dump file to consume. Is the producing stack ready?")
            raise NoDumpAvailable("No dump file found.")

        logger.info(f"Found dump file {self.dump.id} to be ingested")
        count = await self.loader.load(self.dump)
        logger.info("Finished initial sync task successfully.")
        await self._update_status(JobStatus.SUCCESS)
        return count

    async def close_with_failure(self, error: Exception) -> None:
        await self._update_status(JobStatus.FAILED)
        await self.job_repo.store_error(str(error) or type(error).__name__, task_uri=self.task.uri)


class InitialSyncService:
    """
    Orchestrates one full initial sync.

    Args:
        job_repo: Job/Task registry
        sync_repo: Sync task persistence, used to seed the watermark
        loader: Dump loader writing with the initial-sync scope
        job_operation: Operation URI of initial-sync jobs
    """

    def __init__(
        self,
        job_repo: JobRepository,
        sync_repo: SyncTaskRepository,
        loader: DumpFileLoader,
        job_operation: str,
    ):
        self.job_repo = job_repo
        self.sync_repo = sync_repo
        self.loader = loader
        self.job_operation = job_operation

    async def get_latest_job(self) -> Optional[Job]:
        return await self.job_repo.get_latest_job(self.job_operation)

    async def cleanup(self) -> int:
        """Delete every initial-sync job and its tasks."""
        jobs = await self.job_repo.get_jobs(self.job_operation)
        return await self.job_repo.cleanup_jobs(jobs)

    async def run(self) -> Job:
        """
        Run the initial sync to completion.

        Raises:
            InitialSyncFailed: the job ended failed; the cause is chained
        """
        job: Optional[Job] = None
        task: Optional[InitialSyncTask] = None

        try:
            job = await self.job_repo.create_job(self.job_operation)
            with log_context(job_id=job.id, component="initial_sync"):
                scheduled = await self.job_repo.schedule_task(job.uri, INITIAL_SYNC_TASK_OPERATION)
                task = InitialSyncTask(scheduled, self.job_repo, self.loader)

                try:
                    task.dump = await self.loader.resolve()
                except NoDumpAvailable as e:
                    logger.warning(f"Could not resolve a dump file: {e}")

                await task.execute()

                if task.dump.issued is not None:
                    await self.sync_repo.create(SyncTaskStatus.SUCCESS, delta_until=task.dump.issued)
                else:
                    logger.warning(
                        f"Dump {task.dump.id} carries no issued timestamp; "
                        f"delta consumption will start from the configured or task creation time"
                    )

                await self.job_repo.update_status(job.uri, JobStatus.SUCCESS)
                job = job.model_copy(update={"status": JobStatus.SUCCESS})
                logger.info(f"{job.uri} has status {job.status.value}, start ingesting deltas")
                return job

        except Exception as e:
            logger.exception(
                "Something went wrong while doing the initial sync. Closing task with failure state."
            )
            try:
                if task is not None and not task.status.is_terminal():
                    await task.close_with_failure(e)
                if job is not None:
                    await self.job_repo.update_status(job.uri, JobStatus.FAILED)
            except Exception as cleanup_error:
                logger.error(f"Could not mark initial sync as failed: {cleanup_error}")
            raise InitialSyncFailed(f"Initial sync failed: {e}") from e


__all__ = ["InitialSyncService", "InitialSyncTask"]
