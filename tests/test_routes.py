# ============================================================================
# CONTROL AND HEALTH ROUTE TESTS
# ============================================================================
# STATUS: Tests - HTTP surface
# PURPOSE: Verify status codes of the control endpoints and health probes
# CREATED: 16 OCT 2026
# ============================================================================
"""
Control and Health Route Tests

Uses FastAPI TestClient with a mocked scheduler injected through
set_services(), and stub health checks injected through set_health_checks().

Run with:
    pytest tests/test_routes.py -v
"""

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import router, set_services
from core.errors import StoreError
from health.core import HealthCheck, HealthCheckResult
from health.checks import SchedulerCheck, ScratchDirCheck
from health.router import health_router, set_health_checks
from orchestrator.scheduler import IngestOutcome


# ============================================================================
# FIXTURES
# ============================================================================

STATS = {
    "running": True,
    "booting": False,
    "ingesting": False,
    "initial_sync_running": False,
    "started_at": "2024-03-01T12:00:00+00:00",
    "uptime_seconds": 12.5,
    "interval_ms": 60000,
    "next_delay_seconds": 60.0,
    "cycles": 3,
    "last_cycle_at": "2024-03-01T12:02:00+00:00",
    "last_outcome": "nothing_pending",
    "tasks_started": 2,
    "tasks_succeeded": 1,
    "tasks_failed": 1,
    "consecutive_failures": 0,
    "errors": 0,
    "last_watermark": "2024-03-01T11:59:00+00:00",
}


def _make_test_app(scheduler):
    """Create a test FastAPI app with control and health routes."""
    app = FastAPI()
    app.include_router(router)
    app.include_router(health_router)
    set_services(scheduler)
    return app


@pytest.fixture
def scheduler():
    scheduler = MagicMock()
    scheduler.trigger_ingest = AsyncMock(return_value=IngestOutcome.STARTED)
    scheduler.start_initial_sync = MagicMock(return_value=True)
    scheduler.cleanup_initial_sync_jobs = AsyncMock(return_value=2)
    scheduler.stats = dict(STATS)
    return scheduler


@pytest.fixture
def client(scheduler):
    set_health_checks([])
    return TestClient(_make_test_app(scheduler))


# ============================================================================
# INGEST
# ============================================================================

class TestIngestRoute:

    @pytest.mark.parametrize("outcome,code", [
        (IngestOutcome.STARTED, 202),
        (IngestOutcome.NOTHING_PENDING, 200),
        (IngestOutcome.ALREADY_RUNNING, 409),
        (IngestOutcome.FAILED, 500),
    ])
    def test_outcome_status_codes(self, client, scheduler, outcome, code):
        scheduler.trigger_ingest.return_value = outcome

        response = client.post("/ingest")

        assert response.status_code == code
        assert response.json()["outcome"] == outcome.value

    def test_store_error_is_500(self, client, scheduler):
        scheduler.trigger_ingest.side_effect = StoreError("store down")

        response = client.post("/ingest")

        assert response.status_code == 500
        assert "store down" not in response.text

    def test_status(self, client):
        response = client.get("/ingest/status")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "running"
        assert body["metrics"]["tasks_failed"] == 1
        assert body["last_watermark"].startswith("2024-03-01T11:59:00")

    def test_status_while_booting(self, client, scheduler):
        scheduler.stats = dict(STATS, running=False, booting=True)

        body = client.get("/ingest/status").json()

        assert body["booting"] is True


class TestInitialSyncRoutes:

    def test_start(self, client, scheduler):
        response = client.post("/initial-sync-jobs")

        assert response.status_code == 202
        scheduler.start_initial_sync.assert_called_once()

    def test_start_while_running_is_409(self, client, scheduler):
        scheduler.start_initial_sync.return_value = False

        assert client.post("/initial-sync-jobs").status_code == 409

    def test_cleanup(self, client, scheduler):
        response = client.delete("/initial-sync-jobs")

        assert response.status_code == 200
        assert response.json()["jobs_removed"] == 2

    def test_cleanup_failure_is_500(self, client, scheduler):
        scheduler.cleanup_initial_sync_jobs.side_effect = StoreError("down")

        assert client.delete("/initial-sync-jobs").status_code == 500


# ============================================================================
# HEALTH
# ============================================================================

class _StubCheck(HealthCheck):

    def __init__(self, name, result=None, error=None, required=True):
        self.name = name
        self.result = result
        self.error = error
        self.required_for_ready = required

    async def check(self):
        if self.error:
            raise self.error
        return self.result


class TestHealthRoutes:

    def test_livez(self, client):
        response = client.get("/livez")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    def test_readyz_ignores_optional_checks(self, client):
        set_health_checks([
            _StubCheck("store", HealthCheckResult.healthy()),
            _StubCheck("loop", HealthCheckResult.unhealthy("stopped"), required=False),
        ])

        response = client.get("/readyz")

        assert response.status_code == 200
        assert response.json()["checks_passed"] == 1

    def test_readyz_fails_on_required_check(self, client):
        set_health_checks([_StubCheck("store", error=RuntimeError("refused"))])

        response = client.get("/readyz")

        assert response.status_code == 503
        assert response.json()["checks"]["store"]["details"]["exception_type"] == "RuntimeError"

    def test_health_degraded(self, client):
        set_health_checks([
            _StubCheck("store", HealthCheckResult.healthy()),
            _StubCheck("loop", HealthCheckResult.degraded("backing off"), required=False),
        ])

        response = client.get("/health")

        assert response.status_code == 206
        assert response.json()["status"] == "degraded"


class TestApplicationChecks:

    def test_scheduler_stopped_is_unhealthy(self, scheduler):
        scheduler.stats = dict(STATS, running=False)
        result = asyncio.run(SchedulerCheck(scheduler).check())
        assert result.status.value == "unhealthy"

    def test_scheduler_backing_off_is_degraded(self, scheduler):
        scheduler.stats = dict(STATS, consecutive_failures=2)
        result = asyncio.run(SchedulerCheck(scheduler).check())
        assert result.status.value == "degraded"

    def test_scheduler_booting_is_degraded(self, scheduler):
        scheduler.stats = dict(STATS, running=False, booting=True)
        result = asyncio.run(SchedulerCheck(scheduler).check())
        assert result.status.value == "degraded"

    def test_scheduler_disabled_is_healthy(self, scheduler):
        scheduler.stats = dict(STATS, running=False)
        result = asyncio.run(SchedulerCheck(scheduler, disabled=True).check())
        assert result.status.value == "healthy"

    def test_scratch_dir_created(self, tmp_path):
        target = tmp_path / "scratch"
        result = asyncio.run(ScratchDirCheck(target).check())
        assert result.status.value == "healthy"
        assert target.is_dir()
