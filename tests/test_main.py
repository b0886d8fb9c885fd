# ============================================================================
# APPLICATION LIFESPAN TESTS
# ============================================================================
# STATUS: Tests - Startup and shutdown wiring
# PURPOSE: Verify the server starts serving while boot is still running
# CREATED: 19 OCT 2026
# ============================================================================
"""
Application Lifespan Tests

Clients and the scheduler are replaced with mocks; the lifespan context is
entered directly, the way the ASGI server does on startup.

Run with:
    pytest tests/test_main.py -v
"""

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock

import main
from core.config import ConsumerConfig, IngestConfig, ProducerConfig
from core.errors import StoreError
from orchestrator.scheduler import IngestScheduler

OPERATION = "http://redpencil.data.gift/id/jobs/concept/JobOperation/deltas/consumer/initialSync"


def _client():
    client = MagicMock()
    client.wait_until_ready = AsyncMock()
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def wiring(monkeypatch, tmp_path):
    config = ConsumerConfig(
        producer=ProducerConfig(dataset_subject="http://data.example/dataset-type/mandatarissen"),
        ingest=IngestConfig(
            job_creator_uri="http://creator",
            initial_sync_job_operation=OPERATION,
            disable_delta_ingest=True,
            scratch_dir=tmp_path,
        ),
    )
    store = _client()
    producer = _client()

    initial_sync = MagicMock()
    initial_sync.get_latest_job = AsyncMock(return_value=None)
    initial_sync.run = AsyncMock()

    job_repo = MagicMock()
    job_repo.store_error = AsyncMock()

    halt = MagicMock()
    scheduler = IngestScheduler(
        config=config.ingest,
        job_repo=job_repo,
        sync_repo=MagicMock(),
        consumer=MagicMock(),
        producer=producer,
        initial_sync=initial_sync,
        halt=halt,
    )

    monkeypatch.setattr(main, "get_config", lambda: config)
    monkeypatch.setattr(main, "SparqlClient", lambda settings: store)
    monkeypatch.setattr(main, "ProducerClient", lambda settings: producer)
    monkeypatch.setattr(main, "build_scheduler", lambda *args: scheduler)

    return {
        "store": store,
        "producer": producer,
        "scheduler": scheduler,
        "initial_sync": initial_sync,
        "halt": halt,
    }


class TestLifespan:

    def test_serves_while_initial_sync_runs(self, wiring):
        scheduler = wiring["scheduler"]
        initial_sync = wiring["initial_sync"]

        async def scenario():
            release = asyncio.Event()

            async def slow_run():
                await release.wait()

            initial_sync.run.side_effect = slow_run

            async with main.lifespan(main.app):
                for _ in range(5):
                    await asyncio.sleep(0)
                observed = (scheduler.is_booting, initial_sync.run.called)
                release.set()
            return observed

        booting, sync_started = asyncio.run(asyncio.wait_for(scenario(), timeout=2.0))

        assert booting is True
        assert sync_started is True
        assert not scheduler.is_booting
        wiring["store"].wait_until_ready.assert_awaited_once()
        wiring["store"].aclose.assert_awaited_once()
        wiring["producer"].aclose.assert_awaited_once()
        wiring["halt"].assert_not_called()

    def test_store_never_ready_halts_after_startup(self, wiring):
        wiring["store"].wait_until_ready.side_effect = StoreError("no answer")

        async def scenario():
            async with main.lifespan(main.app):
                await asyncio.sleep(0.01)

        asyncio.run(asyncio.wait_for(scenario(), timeout=2.0))

        wiring["halt"].assert_called_once()
        wiring["initial_sync"].get_latest_job.assert_not_awaited()
