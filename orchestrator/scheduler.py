# ============================================================================
# INGEST SCHEDULER
# ============================================================================
# STATUS: Core - Boot policy, periodic trigger and single-flight control
# PURPOSE: Decide when sync tasks start and recover from crashes at boot
# CREATED: 11 OCT 2026
# ============================================================================
"""
Ingest Scheduler

Runs as background tasks in the FastAPI application.

Boot (start_boot() runs it in the background so HTTP is served meanwhile):
0. Wait for the triple store to answer
1. Unless disabled, make sure an initial sync has succeeded (run it when
   there is none yet or the previous one failed)
2. Unless disabled, mark sync tasks left ongoing by a previous process as
   failed, then start the timer loop

A store that never answers, or a failed initial sync under the halt
policy, stops the process with SIGTERM.

Timer loop: trigger_ingest() immediately, then again after every interval.
A cycle that started a sync task waits for it to finish before sleeping.
After a failed sync task the interval doubles per consecutive failure,
capped at max_backoff_ms; a successful task resets it.

Single-flight: every schedule/start decision runs under one asyncio.Lock
and the scheduler holds the handle of the active sync task, so at most one
sync task executes per process. Ongoing tasks found in the store also
count as running.
"""

import asyncio
import logging
import os
import signal
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from core.config import IngestConfig
from core.contracts import JobStatus, SyncTaskStatus
from core.errors import ConsumerError, InitialSyncFailed
from core.logging import log_context
from infrastructure.producer import ProducerClient
from repositories.job_repo import JobRepository
from repositories.sync_task_repo import SyncTaskRepository
from services.delta_file import DeltaFileConsumer
from services.initial_sync import InitialSyncService
from services.sync_task import SyncTask

logger = logging.getLogger(__name__)


def _terminate_process() -> None:
    """Ask the server to shut down gracefully."""
    os.kill(os.getpid(), signal.SIGTERM)


class IngestOutcome(str, Enum):
    """Result of one trigger_ingest() call."""
    STARTED = "started"
    NOTHING_PENDING = "nothing_pending"
    ALREADY_RUNNING = "already_running"
    FAILED = "failed"


class IngestScheduler:
    """
    Drives incremental sync for one process.

    Args:
        config: Ingest settings (interval, backoff, boot flags)
        job_repo: Job/Task registry, also used for ErrorRecords
        sync_repo: Sync task persistence
        consumer: Delta file pipeline handed to every sync task
        producer: Producer client for file listings
        initial_sync: Initial sync orchestration
        halt: Called to stop the process on a fatal boot failure
            (defaults to sending SIGTERM to this process)
    """

    def __init__(
        self,
        config: IngestConfig,
        job_repo: JobRepository,
        sync_repo: SyncTaskRepository,
        consumer: DeltaFileConsumer,
        producer: ProducerClient,
        initial_sync: InitialSyncService,
        halt: Optional[Callable[[], None]] = None,
    ):
        self.config = config
        self.job_repo = job_repo
        self.sync_repo = sync_repo
        self.consumer = consumer
        self.producer = producer
        self.initial_sync = initial_sync
        self._halt = halt or _terminate_process

        # State
        self._running = False
        self._closed = False
        self._stop_event = asyncio.Event()
        self._lock = asyncio.Lock()

        # Background tasks
        self._boot_task: Optional[asyncio.Task] = None
        self._loop_task: Optional[asyncio.Task] = None
        self._active_task: Optional[asyncio.Task] = None
        self._initial_sync_task: Optional[asyncio.Task] = None

        # Metrics
        self._started_at: Optional[datetime] = None
        self._cycles = 0
        self._tasks_started = 0
        self._tasks_succeeded = 0
        self._tasks_failed = 0
        self._errors = 0
        self._consecutive_failures = 0
        self._last_outcome: Optional[IngestOutcome] = None
        self._last_cycle_at: Optional[datetime] = None
        self._last_watermark: Optional[datetime] = None

    # =========================================================================
    # BOOT
    # =========================================================================

    def start_boot(self, ready: Optional[Callable[[], Awaitable[None]]] = None) -> asyncio.Task:
        """
        Run boot() in the background.

        Args:
            ready: Awaited first; should return once the triple store answers
        """
        self._boot_task = asyncio.create_task(self._run_boot(ready), name="boot")
        return self._boot_task

    async def _run_boot(self, ready: Optional[Callable[[], Awaitable[None]]]) -> None:
        if ready is not None:
            try:
                await ready()
            except ConsumerError as e:
                self._errors += 1
                logger.critical(f"Triple store never became available, stopping the service: {e}")
                self._halt()
                return
            logger.info("Database is up, proceeding with setup.")

        try:
            await self.boot()
        except InitialSyncFailed as e:
            logger.critical(
                f"Initial sync failed and HALT_ON_INITIAL_SYNC_FAILURE is set, stopping the service: {e}"
            )
            self._halt()

    async def boot(self) -> None:
        """
        Apply the boot policy.

        Unexpected errors are logged and stored as ErrorRecords and the
        process keeps serving HTTP.

        Raises:
            InitialSyncFailed: only with halt_on_initial_sync_failure set
        """
        try:
            if not self.config.disable_initial_sync:
                await self._ensure_initial_sync()
            else:
                logger.warning("Initial sync disabled")

            if not self.config.disable_delta_ingest:
                await self.recover()
                await self.start()
            else:
                logger.warning("Automated delta ingest disabled")

        except InitialSyncFailed as e:
            self._errors += 1
            logger.error(f"Initial sync failed at boot, delta ingest not started: {e}")
            await self._store_error(f"Unexpected error while booting the service: {e}")
            if self.config.halt_on_initial_sync_failure:
                raise
        except Exception as e:
            self._errors += 1
            logger.exception(f"Unexpected error while booting the service: {e}")
            await self._store_error(f"Unexpected error while booting the service: {e}")

    async def _ensure_initial_sync(self) -> None:
        job = await self.initial_sync.get_latest_job()

        if job is None or job.status == JobStatus.FAILED:
            logger.info(
                f"No initial sync has run yet, or previous failed "
                f"(see: {job.uri if job else 'N/A'}). (Re)starting initial sync"
            )
            await self.initial_sync.run()
        elif job.status != JobStatus.SUCCESS:
            raise ConsumerError(
                f"Unexpected status for {job.uri}: {job.status.value}. "
                f"Check in the database what went wrong"
            )

    async def recover(self) -> int:
        """
        Mark every ongoing sync task failed. Watermarks are left untouched.

        Returns:
            Number of tasks recovered
        """
        running = await self.sync_repo.get_running()
        for uri in running:
            logger.warning(f"Task <{uri}> is still ongoing at startup. Updating its status to failed.")
            await self.sync_repo.persist_status(uri, SyncTaskStatus.FAILED)
        return len(running)

    # =========================================================================
    # TIMER LOOP
    # =========================================================================

    async def start(self) -> None:
        """Start the timer loop. The first trigger fires immediately."""
        if self._closed:
            logger.warning("Ingest scheduler is shutting down, timer loop not started")
            return
        if self._running:
            logger.warning("Ingest scheduler already running")
            return

        self._running = True
        self._started_at = datetime.now(timezone.utc)
        self._stop_event.clear()
        self._loop_task = asyncio.create_task(self._main_loop(), name="ingest-timer")
        logger.info(f"Ingest scheduler started (interval={self.config.interval_ms}ms)")

    async def stop(self) -> None:
        """
        Stop the timer loop and wait for in-flight work.

        A file being consumed is never cancelled; shutdown waits for boot,
        the active sync task and any background initial sync to finish.
        """
        logger.info("Stopping ingest scheduler")
        self._closed = True
        self._running = False
        self._stop_event.set()

        if self._loop_task:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass

        for task in (self._boot_task, self._active_task, self._initial_sync_task):
            if task and not task.done():
                await asyncio.wait([task])

        logger.info(
            f"Ingest scheduler stopped (cycles={self._cycles}, "
            f"tasks_succeeded={self._tasks_succeeded}, tasks_failed={self._tasks_failed})"
        )

    @property
    def next_delay_seconds(self) -> float:
        """Wait before the next trigger, with exponential backoff after failures."""
        delay_ms = self.config.interval_ms * (2 ** self._consecutive_failures)
        return min(delay_ms, max(self.config.max_backoff_ms, self.config.interval_ms)) / 1000

    async def _main_loop(self) -> None:
        while self._running and not self._stop_event.is_set():
            logger.info(f"Executing scheduled ingest at {datetime.now(timezone.utc).isoformat()}")
            try:
                outcome = await self.trigger_ingest()
                if outcome == IngestOutcome.STARTED and self._active_task is not None:
                    # The delay depends on how this task ends
                    await asyncio.wait([self._active_task])
                self._cycles += 1
                self._last_cycle_at = datetime.now(timezone.utc)
            except asyncio.CancelledError:
                break
            except Exception as e:
                self._errors += 1
                logger.exception(f"Error in scheduled ingest: {e}")

            if await self._wait_next_cycle():
                break

        logger.info("Ingest timer loop stopped")

    async def _wait_next_cycle(self) -> bool:
        """Sleep until the next trigger. Returns True when stop was requested."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self.next_delay_seconds)
            return True
        except asyncio.TimeoutError:
            return False

    # =========================================================================
    # INGEST
    # =========================================================================

    async def trigger_ingest(self) -> IngestOutcome:
        """
        Schedule a sync task and start it unless one is already running.

        Raises:
            StoreError: bookkeeping queries failed
        """
        async with self._lock:
            await self.sync_repo.schedule()

            if self.is_ingesting or await self.sync_repo.get_running():
                logger.info(
                    "A sync task is already running. A new task is scheduled "
                    "and will start when the previous task finishes"
                )
                return self._record(IngestOutcome.ALREADY_RUNNING)

            record = await self.sync_repo.get_next()
            if record is None:
                logger.warning("No scheduled sync task found. Did the insertion of a new task just fail?")
                return self._record(IngestOutcome.NOTHING_PENDING)

            since = await self.resolve_since(record.created)
            task = SyncTask(
                uri=record.uri,
                since=since,
                created=record.created,
                repo=self.sync_repo,
                consumer=self.consumer,
            )
            logger.info(f"Start ingesting new delta files since {since.isoformat()}")

            try:
                task.files = await self.producer.get_unconsumed_files(since)
            except ConsumerError as e:
                logger.error(
                    f"Something went wrong while ingesting. Closing sync task with failure state: {e}"
                )
                self._consecutive_failures += 1
                self._tasks_failed += 1
                await task.close_with_failure()
                await self._store_error(f"Could not list delta files for <{task.uri}>: {e}")
                return self._record(IngestOutcome.FAILED)

            self._tasks_started += 1
            self._active_task = asyncio.create_task(
                self._run_sync_task(task),
                name=f"sync-task-{task.uri.rsplit('/', 1)[-1][:8]}",
            )
            return self._record(IngestOutcome.STARTED)

    async def resolve_since(self, created: datetime) -> datetime:
        """
        Watermark a new sync task starts from.

        Latest persisted deltaUntil, else the configured start timestamp,
        else the task's own creation time.
        """
        logger.info(
            "Getting the timestamp of the latest successfully ingested delta file. "
            "This will be used as starting point for consumption."
        )
        latest = await self.sync_repo.get_latest_delta_timestamp()
        if latest is not None:
            return latest

        logger.info("It seems to be the first time we will consume deltas.")
        if self.config.start_from_delta_timestamp is not None:
            logger.info(
                f"Service is configured to start consuming deltas since "
                f"{self.config.start_from_delta_timestamp.isoformat()}"
            )
            return self.config.start_from_delta_timestamp

        logger.info(f"Starting consuming from sync task creation time {created.isoformat()}.")
        return created

    async def _run_sync_task(self, task: SyncTask) -> SyncTaskStatus:
        with log_context(task_id=task.uri, component="sync_task"):
            try:
                status = await task.execute()
            except Exception as e:
                logger.exception(f"Sync task <{task.uri}> aborted: {e}")
                status = SyncTaskStatus.FAILED
                try:
                    await task.close_with_failure()
                except ConsumerError as close_error:
                    logger.error(f"Could not close sync task <{task.uri}> with failure: {close_error}")
                await self._store_error(f"Sync task <{task.uri}> aborted: {e}")

        self._last_watermark = task.latest_delta
        if status == SyncTaskStatus.SUCCESS:
            self._tasks_succeeded += 1
            self._consecutive_failures = 0
        else:
            self._tasks_failed += 1
            self._consecutive_failures += 1
        return status

    # =========================================================================
    # INITIAL SYNC (operator)
    # =========================================================================

    def start_initial_sync(self) -> bool:
        """
        Run an initial sync in the background.

        Returns:
            False if one is already running in this process, including
            the one boot may still be running
        """
        if self.is_booting:
            return False
        if self._initial_sync_task and not self._initial_sync_task.done():
            return False
        self._initial_sync_task = asyncio.create_task(
            self._run_initial_sync(), name="initial-sync"
        )
        return True

    async def _run_initial_sync(self) -> None:
        try:
            await self.initial_sync.run()
            if not self.config.disable_delta_ingest and not self._running:
                await self.recover()
                await self.start()
        except InitialSyncFailed as e:
            self._errors += 1
            logger.error(f"Background initial sync failed: {e}")
        except Exception as e:
            self._errors += 1
            logger.exception(f"Unexpected error after background initial sync: {e}")
            await self._store_error(f"Unexpected error after background initial sync: {e}")

    async def cleanup_initial_sync_jobs(self) -> int:
        count = await self.initial_sync.cleanup()
        logger.info(f"Cleaned {count} initial sync jobs")
        return count

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _record(self, outcome: IngestOutcome) -> IngestOutcome:
        self._last_outcome = outcome
        return outcome

    async def _store_error(self, message: str) -> None:
        try:
            await self.job_repo.store_error(message)
        except ConsumerError as e:
            logger.error(f"Could not store error record ({message}): {e}")

    # =========================================================================
    # STATS AND PROPERTIES
    # =========================================================================

    @property
    def is_running(self) -> bool:
        """Check if the timer loop is running."""
        return self._running

    @property
    def is_booting(self) -> bool:
        """Check if boot is still in progress."""
        return self._boot_task is not None and not self._boot_task.done()

    @property
    def is_ingesting(self) -> bool:
        """Check if a sync task is executing in this process."""
        return self._active_task is not None and not self._active_task.done()

    @property
    def stats(self) -> Dict[str, Any]:
        """Get scheduler statistics."""
        uptime_seconds = None
        if self._started_at:
            uptime_seconds = (datetime.now(timezone.utc) - self._started_at).total_seconds()

        return {
            "running": self._running,
            "booting": self.is_booting,
            "ingesting": self.is_ingesting,
            "initial_sync_running": bool(
                self._initial_sync_task and not self._initial_sync_task.done()
            ),
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "uptime_seconds": uptime_seconds,
            "interval_ms": self.config.interval_ms,
            "next_delay_seconds": self.next_delay_seconds,
            "cycles": self._cycles,
            "last_cycle_at": self._last_cycle_at.isoformat() if self._last_cycle_at else None,
            "last_outcome": self._last_outcome.value if self._last_outcome else None,
            "tasks_started": self._tasks_started,
            "tasks_succeeded": self._tasks_succeeded,
            "tasks_failed": self._tasks_failed,
            "consecutive_failures": self._consecutive_failures,
            "errors": self._errors,
            "last_watermark": self._last_watermark.isoformat() if self._last_watermark else None,
        }


__all__ = ["IngestScheduler", "IngestOutcome"]
