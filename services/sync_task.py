# ============================================================================
# SYNC TASK
# ============================================================================
# STATUS: Core - Incremental sync state machine
# PURPOSE: Consume a file list in order and advance the watermark per file
# CREATED: 10 OCT 2026
# ============================================================================
"""
Sync Task

One execution of incremental sync. Files are consumed strictly one after
another in creation order; the next file is only fetched after the
previous one was fully applied.

Watermark rule: after each successfully applied file whose creation time
is later than the current watermark, ext:deltaUntil is persisted before
the next file is touched. A failed file stops the task; everything after
it stays unconsumed and the watermark points at the last good file.

Progress:
    NOT_STARTED -> PROGRESSING (first success)
                -> FAILED      (any failure, sticky)
"""

import logging
from datetime import datetime
from typing import List, Optional

from core.contracts import ProgressStatus, SyncTaskStatus
from core.models import RemoteDeltaFileDescriptor
from repositories.sync_task_repo import SyncTaskRepository
from services.delta_file import DeltaFileConsumer

logger = logging.getLogger(__name__)


class SyncTask:
    """
    Runtime view of an ext:SyncTask.

    Args:
        uri: Sync task resource URI
        since: Watermark the task starts from
        created: Creation time of the stored task
        repo: Persistence for status and watermark
        consumer: Delta file pipeline
        files: Files to consume, sorted by creation time on assignment
    """

    def __init__(
        self,
        uri: str,
        since: datetime,
        created: datetime,
        repo: SyncTaskRepository,
        consumer: DeltaFileConsumer,
        files: Optional[List[RemoteDeltaFileDescriptor]] = None,
        status: SyncTaskStatus = SyncTaskStatus.NOT_STARTED,
    ):
        self.uri = uri
        self.since = since
        self.created = created
        self.status = status
        self.repo = repo
        self.consumer = consumer
        self.latest_delta = since
        self.handled_files = 0
        self.progress_status = ProgressStatus.NOT_STARTED
        self._files: List[RemoteDeltaFileDescriptor] = []
        self.files = files or []

    @property
    def files(self) -> List[RemoteDeltaFileDescriptor]:
        return self._files

    @files.setter
    def files(self, files: List[RemoteDeltaFileDescriptor]) -> None:
        self._files = sorted(files, key=lambda f: f.created)

    @property
    def total_files(self) -> int:
        return len(self._files)

    # ========================================================================
    # EXECUTION
    # ========================================================================

    async def execute(self) -> SyncTaskStatus:
        """
        Run the task to a terminal status.

        Store errors while persisting status or watermark propagate; the
        caller is expected to close the task with failure in that case.
        """
        await self._persist_status(SyncTaskStatus.ONGOING)
        logger.info(f"Found {self.total_files} new files to be consumed")

        if not self.total_files:
            logger.info("No files to consume. Finished sync task successfully.")
            logger.info(
                f"Most recent delta file consumed is created at {self.latest_delta.isoformat()}."
            )
            await self._persist_latest_delta(self.latest_delta)
            await self._persist_status(SyncTaskStatus.SUCCESS)
            return self.status

        while True:
            descriptor = self._files[self.handled_files]
            await self.consumer.consume(descriptor, self._on_file_consumed)
            if not (
                self.progress_status == ProgressStatus.PROGRESSING
                and self.handled_files < self.total_files
            ):
                break

        if self.progress_status == ProgressStatus.FAILED:
            await self._persist_status(SyncTaskStatus.FAILED)
            logger.warning(
                f"Failed to finish sync task. Skipping the remaining files. Most recent "
                f"delta file successfully consumed is created at {self.latest_delta.isoformat()}."
            )
        else:
            await self._persist_status(SyncTaskStatus.SUCCESS)
            logger.info(
                f"Finished sync task successfully. Ingested {self.total_files} files. Most "
                f"recent delta file consumed is created at {self.latest_delta.isoformat()}."
            )
        return self.status

    async def close_with_failure(self) -> None:
        """Persist the current watermark, then mark the task failed."""
        await self._persist_latest_delta(self.latest_delta)
        await self._persist_status(SyncTaskStatus.FAILED)

    async def _on_file_consumed(
        self,
        descriptor: RemoteDeltaFileDescriptor,
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        self.handled_files += 1
        logger.info(f"Consumed {self.handled_files}/{self.total_files} files")

        if success and self.progress_status != ProgressStatus.FAILED:
            self.progress_status = ProgressStatus.PROGRESSING
            if descriptor.created > self.latest_delta:
                await self._persist_latest_delta(descriptor.created)
        elif not success:
            self.progress_status = ProgressStatus.FAILED
            if error is not None:
                logger.error(f"Consumption of file {descriptor.id} failed: {error}")

    # ========================================================================
    # PERSISTENCE
    # ========================================================================

    async def _persist_status(self, status: SyncTaskStatus) -> None:
        self.status = status
        await self.repo.persist_status(self.uri, status)

    async def _persist_latest_delta(self, delta: datetime) -> None:
        self.latest_delta = delta
        await self.repo.persist_delta_until(self.uri, delta)


__all__ = ["SyncTask"]
