# ============================================================================
# DELTA CONSUMER - MAIN APPLICATION
# ============================================================================
# STATUS: Core - FastAPI application entry point
# PURPOSE: Wire clients, repositories and the ingest scheduler
# CREATED: 13 OCT 2026
# ============================================================================
"""
Delta Consumer Main Application

FastAPI application that:
1. Starts boot in the background: wait for the triple store, then apply
   the boot policy (initial sync, crash recovery, timer loop)
2. Exposes the operator control surface and health probes

Usage:
    uvicorn main:app --host 0.0.0.0 --port 80
"""

import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from __version__ import __version__, BUILD_DATE, SERVICE_NAME
from core.config import ConsumerConfig, get_config
from core.logging import configure_logging, get_logger
from infrastructure import ProducerClient, SparqlClient, StoreClient
from repositories import JobRepository, SyncTaskRepository
from services import DeltaFileConsumer, DumpFileLoader, InitialSyncService, StatementWriter
from orchestrator import IngestScheduler
from api.routes import router, set_services
from health import health_router, set_health_checks
from health.checks import SchedulerCheck, ScratchDirCheck, StoreCheck

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__)

# Global instances
_scheduler: Optional[IngestScheduler] = None


def build_scheduler(
    config: ConsumerConfig,
    store: StoreClient,
    producer: ProducerClient,
) -> IngestScheduler:
    """
    Assemble the ingest scheduler and everything it depends on.

    Delta files and the dump are written by separate writers: the dump
    writer tags its updates with the initial-sync call scope.
    """
    ingest = config.ingest

    job_repo = JobRepository(store, config.store.jobs_graph, ingest.job_creator_uri)
    sync_repo = SyncTaskRepository(store, config.store.application_graph)

    delta_writer = StatementWriter(
        store,
        config.store.application_graph,
        batch_size=ingest.batch_size,
        strict=ingest.strict_term_kinds,
    )
    dump_writer = StatementWriter(
        store,
        config.store.application_graph,
        batch_size=ingest.batch_size,
        strict=ingest.strict_term_kinds,
        scope=config.store.initial_sync_scope,
    )

    consumer = DeltaFileConsumer(producer, delta_writer, ingest.scratch_dir)
    loader = DumpFileLoader(producer, dump_writer, ingest.dump_dir, batch_size=ingest.batch_size)
    initial_sync = InitialSyncService(
        job_repo, sync_repo, loader, ingest.initial_sync_job_operation
    )

    return IngestScheduler(ingest, job_repo, sync_repo, consumer, producer, initial_sync)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Initializes clients and the scheduler on startup and starts boot in the
    background, so probes and control routes answer during a long initial
    sync. Stops the scheduler and closes the clients on shutdown.
    """
    global _scheduler

    logger.info(f"Starting {SERVICE_NAME} v{__version__} (Build {BUILD_DATE})")

    config = get_config()
    config.validate()

    store = SparqlClient(config.store)
    producer = ProducerClient(config.producer)

    try:
        _scheduler = build_scheduler(config, store, producer)
        set_services(_scheduler)
        set_health_checks([
            StoreCheck(store),
            ScratchDirCheck(config.ingest.scratch_dir),
            SchedulerCheck(_scheduler, disabled=config.ingest.disable_delta_ingest),
        ])

        logger.info(f"DISABLE_INITIAL_SYNC: {config.ingest.disable_initial_sync}")
        logger.info(f"DISABLE_DELTA_INGEST: {config.ingest.disable_delta_ingest}")
        _scheduler.start_boot(ready=store.wait_until_ready)

        yield

        logger.info(f"Shutting down {SERVICE_NAME}...")
        await _scheduler.stop()
    finally:
        await producer.aclose()
        await store.aclose()

    logger.info(f"{SERVICE_NAME} stopped")


# Create FastAPI app
app = FastAPI(
    title="Delta Consumer",
    description="Keeps a local triple store in sync with a remote delta producer",
    version=__version__,
    lifespan=lifespan,
)

# Include health check routes (no prefix - /livez, /readyz, /health)
app.include_router(health_router)

# Include control routes
app.include_router(router)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": SERVICE_NAME,
        "version": __version__,
        "build_date": BUILD_DATE,
        "status": "running",
        "docs": "/docs",
    }


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "80"))

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=os.environ.get("RELOAD", "false").lower() == "true",
    )
