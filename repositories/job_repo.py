# ============================================================================
# JOB REPOSITORY
# ============================================================================
# STATUS: Core - Job/Task registry
# PURPOSE: Create, transition, query and clean up jobs, tasks and errors
# CREATED: 09 OCT 2026
# ============================================================================
"""
Job Repository

Generic work tracking in the jobs graph. Nothing here expires on its own:
jobs and tasks are deleted only through cleanup_jobs(), which is meant
for operator-triggered resets.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from core.contracts import (
    DELTA_ERROR_TYPE,
    ERROR_TYPE,
    ERROR_URI_PREFIX,
    JOB_TYPE,
    JOB_URI_PREFIX,
    PREFIXES,
    TASK_TYPE,
    TASK_URI_PREFIX,
    JobStatus,
)
from core.errors import StoreError
from core.models import ErrorRecord, Job, Task
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


def _status_filter(statuses: Sequence[JobStatus], negate: bool = False) -> str:
    if not statuses:
        return ""
    escaped = ", ".join(sparql_escape_uri(JobStatus(s).value) for s in statuses)
    operator = "NOT IN" if negate else "IN"
    return f"FILTER(?status {operator} ({escaped}))"


def _job_status(row, subject: str) -> JobStatus:
    """Map a status binding to JobStatus; unknown URIs raise StoreError."""
    value = binding_value(row, "status")
    try:
        return JobStatus(value)
    except ValueError as e:
        raise StoreError(f"Unknown status <{value}> on <{subject}>") from e


class JobRepository:
    """Repository for Job, Task and ErrorRecord resources."""

    def __init__(self, store: StoreClient, jobs_graph: str, creator_uri: str):
        self.store = store
        self.jobs_graph = jobs_graph
        self.creator_uri = creator_uri

    # ========================================================================
    # CREATE
    # ========================================================================

    async def create_job(self, operation: str) -> Job:
        """Insert a new job with status BUSY."""
        job_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        job = Job(
            uri=JOB_URI_PREFIX + job_id,
            id=job_id,
            operation=operation,
            status=JobStatus.BUSY,
            created=now,
            modified=now,
            creator=self.creator_uri,
        )

        await self.store.update(f"""
    {PREFIXES}
    INSERT DATA {{
      GRAPH {sparql_escape_uri(self.jobs_graph)} {{
        {sparql_escape_uri(job.uri)} a {sparql_escape_uri(JOB_TYPE)} ;
          mu:uuid {sparql_escape_string(job_id)} ;
          dct:creator {sparql_escape_uri(self.creator_uri)} ;
          adms:status {sparql_escape_uri(job.status.value)} ;
          dct:created {sparql_escape_datetime(now)} ;
          dct:modified {sparql_escape_datetime(now)} ;
          task:operation {sparql_escape_uri(operation)} .
      }}
    }}
    """)
        logger.info(f"Created job {job.uri} for operation {operation}")
        return job

    async def schedule_task(self, job_uri: str, operation: str, index: str = "0") -> Task:
        """Insert a new task with status SCHEDULED, part of `job_uri`."""
        task_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        task = Task(
            uri=TASK_URI_PREFIX + task_id,
            id=task_id,
            job_uri=job_uri,
            operation=operation,
            status=JobStatus.SCHEDULED,
            index=index,
            created=now,
            modified=now,
        )

        await self.store.update(f"""
    {PREFIXES}
    INSERT DATA {{
      GRAPH {sparql_escape_uri(self.jobs_graph)} {{
        {sparql_escape_uri(task.uri)} a {sparql_escape_uri(TASK_TYPE)} ;
          mu:uuid {sparql_escape_string(task_id)} ;
          adms:status {sparql_escape_uri(task.status.value)} ;
          dct:created {sparql_escape_datetime(now)} ;
          dct:modified {sparql_escape_datetime(now)} ;
          task:operation {sparql_escape_uri(operation)} ;
          task:index {sparql_escape_string(index)} ;
          dct:isPartOf {sparql_escape_uri(job_uri)} .
      }}
    }}
    """)
        logger.info(f"Scheduled task {task.uri} for job {job_uri}")
        return task

    async def store_error(self, message: str, task_uri: Optional[str] = None) -> ErrorRecord:
        """Append an ErrorRecord, linked from `task_uri` when given."""
        error_id = str(uuid.uuid4())
        record = ErrorRecord(
            uri=ERROR_URI_PREFIX + error_id,
            id=error_id,
            message=message,
            task_uri=task_uri,
        )
        task_link = ""
        if task_uri:
            task_link = (
                f"{sparql_escape_uri(task_uri)} task:error {sparql_escape_uri(record.uri)} ."
            )

        await self.store.update(f"""
    {PREFIXES}
    INSERT DATA {{
      GRAPH {sparql_escape_uri(self.jobs_graph)} {{
        {sparql_escape_uri(record.uri)} a {sparql_escape_uri(ERROR_TYPE)}, {sparql_escape_uri(DELTA_ERROR_TYPE)} ;
          mu:uuid {sparql_escape_string(error_id)} ;
          oslc:message {sparql_escape_string(message)} .
        {task_link}
      }}
    }}
    """)
        logger.info(f"Stored error {record.uri}")
        return record

    # ========================================================================
    # UPDATE
    # ========================================================================

    async def update_status(self, uri: str, status: JobStatus) -> None:
        """Replace the status of a job or task and bump dct:modified."""
        now = datetime.now(timezone.utc)
        subject = sparql_escape_uri(uri)
        await self.store.update(f"""
    {PREFIXES}
    DELETE {{
      GRAPH ?g {{
        {subject} adms:status ?status ;
          dct:modified ?modified .
      }}
    }}
    INSERT {{
      GRAPH ?g {{
        {subject} adms:status {sparql_escape_uri(status.value)} ;
          dct:modified {sparql_escape_datetime(now)} .
      }}
    }}
    WHERE {{
      GRAPH ?g {{
        {subject} adms:status ?status .
        OPTIONAL {{ {subject} dct:modified ?modified . }}
      }}
    }}
    """)
        logger.debug(f"Updated status of {uri} to {status.value}")

    # ========================================================================
    # QUERY
    # ========================================================================

    async def get_jobs(
        self,
        operation: str,
        status_in: Sequence[JobStatus] = (),
        status_not_in: Sequence[JobStatus] = (),
    ) -> List[Job]:
        """
        Jobs of `operation`, optionally filtered on status.

        Rows whose status is not a known JobStatus are skipped with a warning.
        """
        result = await self.store.query(f"""
    {PREFIXES}
    SELECT DISTINCT ?job ?status ?created WHERE {{
      GRAPH ?g {{
        ?job a {sparql_escape_uri(JOB_TYPE)} ;
          task:operation {sparql_escape_uri(operation)} ;
          adms:status ?status .
        OPTIONAL {{ ?job dct:created ?created . }}
        {_status_filter(status_in)}
        {_status_filter(status_not_in, negate=True)}
      }}
    }}
    """)
        jobs = []
        for row in bindings(result):
            uri = binding_value(row, "job")
            try:
                status = _job_status(row, uri)
            except StoreError as e:
                logger.warning(f"Skipping job: {e}")
                continue
            jobs.append(Job(
                uri=uri,
                operation=operation,
                status=status,
                created=binding_datetime(row, "created"),
            ))
        return jobs

    async def get_latest_job(self, operation: str) -> Optional[Job]:
        """Most recently created job of `operation` by this service's creator."""
        result = await self.store.query(f"""
    {PREFIXES}
    SELECT ?job ?status ?created WHERE {{
      GRAPH ?g {{
        ?job a {sparql_escape_uri(JOB_TYPE)} ;
          adms:status ?status ;
          task:operation {sparql_escape_uri(operation)} ;
          dct:created ?created ;
          dct:creator {sparql_escape_uri(self.creator_uri)} .
      }}
    }}
    ORDER BY DESC(?created)
    LIMIT 1
    """)
        rows = bindings(result)
        if not rows:
            return None

        row = rows[0]
        uri = binding_value(row, "job")
        return Job(
            uri=uri,
            operation=operation,
            status=_job_status(row, uri),
            created=binding_datetime(row, "created"),
            creator=self.creator_uri,
        )

    # ========================================================================
    # CLEANUP
    # ========================================================================

    async def cleanup_jobs(self, jobs: Sequence[Job]) -> int:
        """
        Delete each job and every task that is part of it.

        Returns:
            Number of jobs cleaned up
        """
        for job in jobs:
            job_uri = sparql_escape_uri(job.uri)
            await self.store.update(f"""
      {PREFIXES}
      DELETE {{
        GRAPH ?g {{
          ?job ?jobP ?jobO .
          ?task ?taskP ?taskO .
        }}
      }}
      WHERE {{
        BIND({job_uri} AS ?job)
        GRAPH ?g {{
          ?job ?jobP ?jobO .
          OPTIONAL {{
            ?task dct:isPartOf ?job ;
              ?taskP ?taskO .
          }}
        }}
      }}
      """)
            logger.info(f"Cleaned up job {job.uri}")
        return len(jobs)


__all__ = ["JobRepository"]
