# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# STATUS: Foundation - Core enums shared by every layer
# PURPOSE: Status vocabularies and statement kinds for the delta consumer
# CREATED: 05 OCT 2026
# ============================================================================
"""
Base contracts for the delta consumer.

Status values are the URIs stored in the triple store, so the enum
members can be written to SPARQL as-is and parsed back from bindings.
"""

from enum import Enum


# ============================================================================
# SYNC TASK STATUS
# ============================================================================

_SYNC_TASK_STATUS_BASE = "http://lblod.data.gift/mandatendatabank-consumer-sync-task-statuses/"


class SyncTaskStatus(str, Enum):
    """
    Incremental sync task lifecycle states.

    State transitions:
        NOT_STARTED -> ONGOING -> SUCCESS
                               -> FAILED
    """
    NOT_STARTED = _SYNC_TASK_STATUS_BASE + "not-started"
    ONGOING = _SYNC_TASK_STATUS_BASE + "ongoing"
    SUCCESS = _SYNC_TASK_STATUS_BASE + "success"
    FAILED = _SYNC_TASK_STATUS_BASE + "failure"


class ProgressStatus(str, Enum):
    """
    Progress of file handling inside one running sync task.

    Process-local only, never persisted.
    """
    NOT_STARTED = "notStarted"
    PROGRESSING = "progressing"
    FAILED = "failed"


# ============================================================================
# JOB / TASK STATUS
# ============================================================================

_JOB_STATUS_BASE = "http://redpencil.data.gift/id/concept/JobStatus/"


class JobStatus(str, Enum):
    """
    Generic job and task states.

    State transitions:
        SCHEDULED -> BUSY -> SUCCESS
                          -> FAILED
        (jobs are created BUSY directly)
    """
    BUSY = _JOB_STATUS_BASE + "busy"
    SCHEDULED = _JOB_STATUS_BASE + "scheduled"
    SUCCESS = _JOB_STATUS_BASE + "success"
    FAILED = _JOB_STATUS_BASE + "failed"
    CANCELED = _JOB_STATUS_BASE + "canceled"

    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCESS, JobStatus.FAILED, JobStatus.CANCELED)


# ============================================================================
# STATEMENTS
# ============================================================================

class StatementKind(str, Enum):
    """Direction of a statement batch written to the store."""
    INSERT = "insert"
    DELETE = "delete"

    @property
    def sparql_keyword(self) -> str:
        return "INSERT DATA" if self is StatementKind.INSERT else "DELETE DATA"


class TermKind(str, Enum):
    """Closed set of RDF term shapes the writer knows how to render."""
    URI = "uri"
    LITERAL = "literal"
    TYPED_LITERAL = "typed-literal"
    LANG_LITERAL = "lang-literal"


# ============================================================================
# FIXED VOCABULARY
# ============================================================================

INITIAL_SYNC_TASK_OPERATION = (
    "http://redpencil.data.gift/id/jobs/concept/TaskOperation/deltas/consumer/initialSyncing"
)
JOB_URI_PREFIX = "http://redpencil.data.gift/id/job/"
TASK_URI_PREFIX = "http://redpencil.data.gift/id/task/"
ERROR_URI_PREFIX = "http://redpencil.data.gift/id/jobs/error/"
SYNC_TASK_URI_PREFIX = "http://lblod.data.gift/mandatendatabank-consumer-sync-tasks/"
SYNC_TASK_CREATOR = "http://lblod.data.gift/services/mandatendatabank-consumer"

JOB_TYPE = "http://vocab.deri.ie/cogs#Job"
TASK_TYPE = "http://redpencil.data.gift/vocabularies/tasks/Task"
ERROR_TYPE = "http://open-services.net/ns/core#Error"
DELTA_ERROR_TYPE = "http://redpencil.data.gift/vocabularies/deltas/Error"

PREFIXES = """
  PREFIX mu: <http://mu.semte.ch/vocabularies/core/>
  PREFIX task: <http://redpencil.data.gift/vocabularies/tasks/>
  PREFIX dct: <http://purl.org/dc/terms/>
  PREFIX prov: <http://www.w3.org/ns/prov#>
  PREFIX nie: <http://www.semanticdesktop.org/ontologies/2007/01/19/nie#>
  PREFIX ext: <http://mu.semte.ch/vocabularies/ext/>
  PREFIX oslc: <http://open-services.net/ns/core#>
  PREFIX cogs: <http://vocab.deri.ie/cogs#>
  PREFIX adms: <http://www.w3.org/ns/adms#>
  PREFIX nfo: <http://www.semanticdesktop.org/ontologies/2007/03/22/nfo#>
  PREFIX xsd: <http://www.w3.org/2001/XMLSchema#>
"""
