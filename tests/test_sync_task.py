# ============================================================================
# SYNC TASK TESTS
# ============================================================================
# STATUS: Tests - Incremental sync state machine
# PURPOSE: Verify watermark advancement, halting and terminal statuses
# CREATED: 14 OCT 2026
# ============================================================================
"""
Sync Task Tests

Covers:
1. No files: watermark unchanged, task success
2. All files succeed: watermark advances per file to the last one
3. Middle file fails: watermark stays at the last good file, later files
   are never fetched, task failed
4. close_with_failure persists the watermark before the failed status
5. Files are consumed in creation order whatever order they arrive in

Run with:
    pytest tests/test_sync_task.py -v
"""

import asyncio
import pytest
from datetime import datetime, timedelta, timezone
from typing import Dict, List
from unittest.mock import AsyncMock, MagicMock

from core.contracts import ProgressStatus, SyncTaskStatus
from core.errors import DownloadError
from core.models import RemoteDeltaFileDescriptor
from services.sync_task import SyncTask

T0 = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
URI = "http://lblod.data.gift/mandatendatabank-consumer-sync-tasks/1"


def _file(file_id: str, minutes: int) -> RemoteDeltaFileDescriptor:
    return RemoteDeltaFileDescriptor(id=file_id, created=T0 + timedelta(minutes=minutes))


class FakeConsumer:
    """Reports a fixed outcome per file id and records what was fetched."""

    def __init__(self, failing: Dict[str, Exception] = None):
        self.failing = failing or {}
        self.fetched: List[str] = []

    async def consume(self, descriptor, on_complete):
        self.fetched.append(descriptor.id)
        error = self.failing.get(descriptor.id)
        await on_complete(descriptor, error is None, error)
        return error is None


@pytest.fixture
def repo():
    """Repository mock recording every persisted value in order."""
    repo = MagicMock()
    repo.calls = []

    async def persist_status(uri, status):
        repo.calls.append(("status", status))

    async def persist_delta_until(uri, ts):
        repo.calls.append(("delta", ts))

    repo.persist_status = AsyncMock(side_effect=persist_status)
    repo.persist_delta_until = AsyncMock(side_effect=persist_delta_until)
    return repo


def _task(repo, consumer, files=()):
    return SyncTask(
        uri=URI,
        since=T0,
        created=T0,
        repo=repo,
        consumer=consumer,
        files=list(files),
    )


class TestSyncTaskExecute:

    def test_no_files_success_watermark_unchanged(self, repo):
        task = _task(repo, FakeConsumer())

        status = asyncio.run(task.execute())

        assert status == SyncTaskStatus.SUCCESS
        assert repo.calls == [
            ("status", SyncTaskStatus.ONGOING),
            ("delta", T0),
            ("status", SyncTaskStatus.SUCCESS),
        ]

    def test_all_files_succeed(self, repo):
        files = [_file("f1", 1), _file("f2", 2), _file("f3", 3)]
        consumer = FakeConsumer()
        task = _task(repo, consumer, files)

        status = asyncio.run(task.execute())

        assert status == SyncTaskStatus.SUCCESS
        assert consumer.fetched == ["f1", "f2", "f3"]
        assert task.handled_files == 3
        assert task.latest_delta == files[2].created
        assert repo.calls == [
            ("status", SyncTaskStatus.ONGOING),
            ("delta", files[0].created),
            ("delta", files[1].created),
            ("delta", files[2].created),
            ("status", SyncTaskStatus.SUCCESS),
        ]

    def test_failure_halts_and_keeps_last_good_watermark(self, repo):
        files = [_file("f1", 1), _file("f2", 2), _file("f3", 3)]
        consumer = FakeConsumer(failing={"f2": DownloadError("gone", file_id="f2")})
        task = _task(repo, consumer, files)

        status = asyncio.run(task.execute())

        assert status == SyncTaskStatus.FAILED
        assert consumer.fetched == ["f1", "f2"]
        assert task.progress_status == ProgressStatus.FAILED
        assert task.latest_delta == files[0].created
        assert repo.calls == [
            ("status", SyncTaskStatus.ONGOING),
            ("delta", files[0].created),
            ("status", SyncTaskStatus.FAILED),
        ]

    def test_first_file_fails(self, repo):
        consumer = FakeConsumer(failing={"f1": DownloadError("gone")})
        task = _task(repo, consumer, [_file("f1", 1), _file("f2", 2)])

        status = asyncio.run(task.execute())

        assert status == SyncTaskStatus.FAILED
        assert consumer.fetched == ["f1"]
        assert ("delta", T0 + timedelta(minutes=1)) not in repo.calls

    def test_files_sorted_by_creation(self, repo):
        consumer = FakeConsumer()
        task = _task(repo, consumer, [_file("late", 5), _file("early", 1)])

        asyncio.run(task.execute())

        assert consumer.fetched == ["early", "late"]

    def test_older_file_does_not_move_watermark_back(self, repo):
        task = SyncTask(
            uri=URI,
            since=T0 + timedelta(minutes=10),
            created=T0,
            repo=repo,
            consumer=FakeConsumer(),
            files=[_file("old", 1)],
        )

        asyncio.run(task.execute())

        assert not [c for c in repo.calls if c[0] == "delta"]
        assert task.latest_delta == T0 + timedelta(minutes=10)

    def test_store_error_propagates(self, repo):
        repo.persist_status = AsyncMock(side_effect=RuntimeError("store down"))
        task = _task(repo, FakeConsumer(), [_file("f1", 1)])

        with pytest.raises(RuntimeError):
            asyncio.run(task.execute())


class TestCloseWithFailure:

    def test_persists_watermark_then_failed(self, repo):
        task = _task(repo, FakeConsumer())

        asyncio.run(task.close_with_failure())

        assert repo.calls == [("delta", T0), ("status", SyncTaskStatus.FAILED)]
        assert task.status == SyncTaskStatus.FAILED
