# ============================================================================
# INITIAL SYNC TESTS
# ============================================================================
# STATUS: Tests - Dump loading and initial sync bookkeeping
# PURPOSE: Verify dump batching, watermark seeding and failure handling
# CREATED: 15 OCT 2026
# ============================================================================
"""
Initial Sync Tests

Covers:
1. DumpFileLoader inserts non-blank lines in batches and removes the file
2. A missing dump is a failure: task failed with an ErrorRecord, job failed
3. Success seeds a SUCCESS sync task at the dump's issued timestamp
4. Loader failures mark task and job failed and raise InitialSyncFailed,
   also when marking them failed fails

Run with:
    pytest tests/test_initial_sync.py -v
"""

import asyncio
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from core.contracts import INITIAL_SYNC_TASK_OPERATION, JobStatus, StatementKind, SyncTaskStatus
from core.errors import InitialSyncFailed, NoDumpAvailable, StoreError, WriteError
from core.models import Job, RemoteDumpDescriptor, Task
from services.dump_file import DumpFileLoader
from services.initial_sync import InitialSyncService

OPERATION = "http://redpencil.data.gift/id/jobs/concept/JobOperation/deltas/consumer/initialSync"
ISSUED = datetime(2024, 2, 1, tzinfo=timezone.utc)


def _producer_serving(content: str):
    producer = MagicMock()

    async def download(file_id, destination):
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(content, encoding="utf-8")
        return destination

    producer.download = AsyncMock(side_effect=download)
    return producer


# ============================================================================
# DUMP LOADER
# ============================================================================

class TestDumpFileLoader:

    def test_loads_lines_in_batches(self, tmp_path):
        lines = [f"<http://s/{i}> <http://p> \"{i}\" ." for i in range(5)]
        content = "\n".join(lines[:2]) + "\n\n   \n" + "\n".join(lines[2:]) + "\n"
        writer = MagicMock()
        writer.apply = AsyncMock()
        loader = DumpFileLoader(_producer_serving(content), writer, tmp_path, batch_size=2)

        total = asyncio.run(loader.load(RemoteDumpDescriptor(id="dump-1", issued=ISSUED)))

        assert total == 5
        batches = [call.args[1] for call in writer.apply.await_args_list]
        assert [len(b) for b in batches] == [2, 2, 1]
        assert batches[0][0] == lines[0]
        assert all(call.args[0] == StatementKind.INSERT for call in writer.apply.await_args_list)
        assert not (tmp_path / "dump-1.ttl").exists()

    def test_write_failure_keeps_file(self, tmp_path):
        writer = MagicMock()
        writer.apply = AsyncMock(side_effect=WriteError("down"))
        loader = DumpFileLoader(_producer_serving("<a> <b> <c> .\n"), writer, tmp_path)

        with pytest.raises(WriteError):
            asyncio.run(loader.load(RemoteDumpDescriptor(id="dump-1")))
        assert (tmp_path / "dump-1.ttl").exists()


# ============================================================================
# INITIAL SYNC SERVICE
# ============================================================================

@pytest.fixture
def job_repo():
    repo = MagicMock()
    repo.create_job = AsyncMock(return_value=Job(
        uri="http://job/1", id="1", operation=OPERATION, status=JobStatus.BUSY,
    ))
    repo.schedule_task = AsyncMock(return_value=Task(
        uri="http://task/1", id="t1", job_uri="http://job/1",
        operation=INITIAL_SYNC_TASK_OPERATION,
    ))
    repo.update_status = AsyncMock()
    repo.store_error = AsyncMock()
    return repo


@pytest.fixture
def sync_repo():
    repo = MagicMock()
    repo.create = AsyncMock()
    return repo


def _loader(resolve=None, load=None):
    loader = MagicMock()
    loader.resolve = AsyncMock(**(resolve or {}))
    loader.load = AsyncMock(**(load or {"return_value": 10}))
    return loader


def _statuses(job_repo, uri):
    return [c.args[1] for c in job_repo.update_status.await_args_list if c.args[0] == uri]


class TestInitialSyncService:

    def test_success_seeds_watermark(self, job_repo, sync_repo):
        dump = RemoteDumpDescriptor(id="dump-1", issued=ISSUED)
        loader = _loader(resolve={"return_value": dump})
        service = InitialSyncService(job_repo, sync_repo, loader, OPERATION)

        job = asyncio.run(service.run())

        assert job.status == JobStatus.SUCCESS
        loader.load.assert_awaited_once_with(dump)
        sync_repo.create.assert_awaited_once_with(SyncTaskStatus.SUCCESS, delta_until=ISSUED)
        assert _statuses(job_repo, "http://task/1") == [JobStatus.BUSY, JobStatus.SUCCESS]
        assert _statuses(job_repo, "http://job/1") == [JobStatus.SUCCESS]
        job_repo.schedule_task.assert_awaited_once_with("http://job/1", INITIAL_SYNC_TASK_OPERATION)

    def test_missing_dump_fails_job_and_task(self, job_repo, sync_repo):
        loader = _loader(resolve={"side_effect": NoDumpAvailable("none")})
        service = InitialSyncService(job_repo, sync_repo, loader, OPERATION)

        with pytest.raises(InitialSyncFailed):
            asyncio.run(service.run())

        loader.load.assert_not_awaited()
        sync_repo.create.assert_not_awaited()
        assert _statuses(job_repo, "http://task/1") == [JobStatus.BUSY, JobStatus.FAILED]
        assert _statuses(job_repo, "http://job/1") == [JobStatus.FAILED]
        assert job_repo.store_error.await_args.kwargs["task_uri"] == "http://task/1"

    def test_load_failure_fails_job_and_task(self, job_repo, sync_repo):
        loader = _loader(
            resolve={"return_value": RemoteDumpDescriptor(id="dump-1", issued=ISSUED)},
            load={"side_effect": WriteError("store down")},
        )
        service = InitialSyncService(job_repo, sync_repo, loader, OPERATION)

        with pytest.raises(InitialSyncFailed) as exc_info:
            asyncio.run(service.run())

        assert isinstance(exc_info.value.__cause__, WriteError)
        sync_repo.create.assert_not_awaited()
        assert _statuses(job_repo, "http://job/1") == [JobStatus.FAILED]

    def test_dump_without_issued_skips_seeding(self, job_repo, sync_repo):
        loader = _loader(resolve={"return_value": RemoteDumpDescriptor(id="dump-1")})
        service = InitialSyncService(job_repo, sync_repo, loader, OPERATION)

        job = asyncio.run(service.run())

        assert job.status == JobStatus.SUCCESS
        sync_repo.create.assert_not_awaited()

    def test_cleanup_removes_all_jobs_of_operation(self, job_repo, sync_repo):
        jobs = [Job(uri="http://job/1", operation=OPERATION)]
        job_repo.get_jobs = AsyncMock(return_value=jobs)
        job_repo.cleanup_jobs = AsyncMock(return_value=1)
        service = InitialSyncService(job_repo, sync_repo, _loader(), OPERATION)

        assert asyncio.run(service.cleanup()) == 1
        job_repo.get_jobs.assert_awaited_once_with(OPERATION)
        job_repo.cleanup_jobs.assert_awaited_once_with(jobs)

    def test_failure_while_marking_failed_still_raises_initial_sync_failed(self, job_repo, sync_repo):
        async def update_status(uri, status):
            if status == JobStatus.FAILED:
                raise StoreError("store down")

        job_repo.update_status = AsyncMock(side_effect=update_status)
        loader = _loader(
            resolve={"return_value": RemoteDumpDescriptor(id="dump-1", issued=ISSUED)},
            load={"side_effect": WriteError("write rejected")},
        )
        service = InitialSyncService(job_repo, sync_repo, loader, OPERATION)

        with pytest.raises(InitialSyncFailed) as exc_info:
            asyncio.run(service.run())

        assert isinstance(exc_info.value.__cause__, WriteError)

    def test_seeding_failure_leaves_finished_task_alone(self, job_repo, sync_repo):
        sync_repo.create = AsyncMock(side_effect=StoreError("insert rejected"))
        loader = _loader(resolve={"return_value": RemoteDumpDescriptor(id="dump-1", issued=ISSUED)})
        service = InitialSyncService(job_repo, sync_repo, loader, OPERATION)

        with pytest.raises(InitialSyncFailed):
            asyncio.run(service.run())

        assert _statuses(job_repo, "http://task/1") == [JobStatus.BUSY, JobStatus.SUCCESS]
        assert _statuses(job_repo, "http://job/1") == [JobStatus.FAILED]
        job_repo.store_error.assert_not_awaited()
