# ============================================================================
# SYNC TASK REPOSITORY
# ============================================================================
# STATUS: Core - Incremental sync bookkeeping
# PURPOSE: Persist ext:SyncTask status and the ext:deltaUntil watermark
# CREATED: 09 OCT 2026
# ============================================================================
"""
Sync Task Repository

An ext:SyncTask carries a status, a creation time and, once any file has
been applied, the watermark ext:deltaUntil. The highest deltaUntil across
all tasks, whatever their status, is where the next sync starts.

Status and watermark replacement is done as DELETE WHERE followed by
INSERT ... WHERE in the task's own graph, so the task keeps exactly one
value for each.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from core.contracts import (
    PREFIXES,
    SYNC_TASK_CREATOR,
    SYNC_TASK_URI_PREFIX,
    SyncTaskStatus,
)
from core.models import SyncTaskRecord
from infrastructure.sparql import (
    StoreClient,
    binding_datetime,
    binding_value,
    bindings,
    sparql_escape_datetime,
    sparql_escape_string,
    sparql_escape_uri,
)

logger = logging.getLogger(__name__)


class SyncTaskRepository:
    """Persistence for ext:SyncTask resources in the application graph."""

    def __init__(self, store: StoreClient, application_graph: str):
        self.store = store
        self.application_graph = application_graph

    async def create(
        self,
        status: SyncTaskStatus = SyncTaskStatus.NOT_STARTED,
        delta_until: Optional[datetime] = None,
    ) -> SyncTaskRecord:
        """Insert a sync task, optionally with a watermark already set."""
        task_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        record = SyncTaskRecord(
            uri=SYNC_TASK_URI_PREFIX + task_id,
            created=now,
            status=status,
            delta_until=delta_until,
        )

        watermark = ""
        if delta_until is not None:
            watermark = f"; ext:deltaUntil {sparql_escape_datetime(delta_until)}"

        await self.store.update(f"""
    {PREFIXES}
    INSERT DATA {{
      GRAPH {sparql_escape_uri(self.application_graph)} {{
        {sparql_escape_uri(record.uri)} a ext:SyncTask ;
          mu:uuid {sparql_escape_string(task_id)} ;
          adms:status {sparql_escape_uri(status.value)} ;
          dct:creator {sparql_escape_uri(SYNC_TASK_CREATOR)} ;
          dct:created {sparql_escape_datetime(now)}
          {watermark} .
      }}
    }}
    """)
        logger.info(f"Created sync task <{record.uri}> with status {status.value}")
        return record

    async def schedule(self) -> bool:
        """
        Ensure exactly one not-started sync task exists.

        Returns:
            True if a new task was inserted
        """
        result = await self.store.query(f"""
    {PREFIXES}
    SELECT ?s WHERE {{
      ?s a ext:SyncTask ;
        adms:status {sparql_escape_uri(SyncTaskStatus.NOT_STARTED.value)} .
    }} LIMIT 1
    """)
        if bindings(result):
            logger.info(
                "There is already a sync task scheduled to ingest delta files. "
                "No need to create a new task."
            )
            return False

        record = await self.create(SyncTaskStatus.NOT_STARTED)
        logger.info(f"Scheduled new sync task <{record.uri}> to ingest delta files")
        return True

    async def get_next(self) -> Optional[SyncTaskRecord]:
        """Earliest-created not-started sync task, or None."""
        result = await self.store.query(f"""
    {PREFIXES}
    SELECT ?s ?created WHERE {{
      ?s a ext:SyncTask ;
        adms:status {sparql_escape_uri(SyncTaskStatus.NOT_STARTED.value)} ;
        dct:created ?created .
    }} ORDER BY ?created LIMIT 1
    """)
        rows = bindings(result)
        if not rows:
            return None

        return SyncTaskRecord(
            uri=binding_value(rows[0], "s"),
            created=binding_datetime(rows[0], "created"),
            status=SyncTaskStatus.NOT_STARTED,
        )

    async def get_running(self) -> List[str]:
        """URIs of every sync task currently marked ongoing."""
        result = await self.store.query(f"""
    {PREFIXES}
    SELECT DISTINCT ?s WHERE {{
      ?s a ext:SyncTask ;
        adms:status {sparql_escape_uri(SyncTaskStatus.ONGOING.value)} .
    }}
    """)
        return [binding_value(row, "s") for row in bindings(result)]

    async def get_latest_delta_timestamp(self) -> Optional[datetime]:
        """Highest ext:deltaUntil over all sync tasks, None if never set."""
        result = await self.store.query(f"""
    {PREFIXES}
    SELECT ?s ?latestDelta WHERE {{
      ?s a ext:SyncTask ;
        ext:deltaUntil ?latestDelta .
    }} ORDER BY DESC(?latestDelta) LIMIT 1
    """)
        rows = bindings(result)
        if not rows:
            return None
        return binding_datetime(rows[0], "latestDelta")

    async def persist_status(self, uri: str, status: SyncTaskStatus) -> None:
        subject = sparql_escape_uri(uri)
        await self.store.update(f"""
    {PREFIXES}
    DELETE WHERE {{
      GRAPH ?g {{
        {subject} adms:status ?status .
      }}
    }}
    """)
        await self.store.update(f"""
    {PREFIXES}
    INSERT {{
      GRAPH ?g {{
        {subject} adms:status {sparql_escape_uri(status.value)} .
      }}
    }} WHERE {{
      GRAPH ?g {{
        {subject} a ext:SyncTask .
      }}
    }}
    """)
        logger.debug(f"Sync task <{uri}> status set to {status.value}")

    async def persist_delta_until(self, uri: str, delta_until: datetime) -> None:
        subject = sparql_escape_uri(uri)
        await self.store.update(f"""
    {PREFIXES}
    DELETE WHERE {{
      GRAPH ?g {{
        {subject} ext:deltaUntil ?latestDelta .
      }}
    }}
    """)
        await self.store.update(f"""
    {PREFIXES}
    INSERT {{
      GRAPH ?g {{
        {subject} ext:deltaUntil {sparql_escape_datetime(delta_until)} .
      }}
    }} WHERE {{
      GRAPH ?g {{
        {subject} a ext:SyncTask .
      }}
    }}
    """)
        logger.debug(f"Sync task <{uri}> watermark set to {delta_until.isoformat()}")


__all__ = ["SyncTaskRepository"]
