# ============================================================================
# SERVICES MODULE
# ============================================================================
# STATUS: Core - Business logic layer
# PURPOSE: Statement writing, delta/dump consumption, sync task execution
# CREATED: 08 OCT 2026
# ============================================================================
"""
Services Module

Services coordinate between the producer client, the store and the
repositories.

Usage:
    from services import StatementWriter, DeltaFileConsumer

    writer = StatementWriter(store, config.store.application_graph, batch_size=100)
    consumer = DeltaFileConsumer(producer, writer, config.ingest.scratch_dir)
"""

from .statement_writer import StatementWriter, render_term, render_statement
from .delta_file import DeltaFileConsumer, parse_changesets
from .dump_file import DumpFileLoader
from .sync_task import SyncTask
from .initial_sync import InitialSyncService, InitialSyncTask

__all__ = [
    "StatementWriter",
    "render_term",
    "render_statement",
    "DeltaFileConsumer",
    "parse_changesets",
    "DumpFileLoader",
    "SyncTask",
    "InitialSyncService",
    "InitialSyncTask",
]
