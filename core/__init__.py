# ============================================================================
# CORE MODULE
# ============================================================================
# STATUS: Core module initialization
# PURPOSE: Export core contracts, errors and models
# CREATED: 05 OCT 2026
# ============================================================================

from core.contracts import JobStatus, SyncTaskStatus, ProgressStatus, StatementKind, TermKind
from core.errors import (
    ConsumerError,
    DownloadError,
    ParseError,
    WriteError,
    ProducerUnavailable,
    NoDumpAvailable,
)
from core.models import (
    RdfTerm,
    Triple,
    Changeset,
    RemoteDeltaFileDescriptor,
    RemoteDumpDescriptor,
    Job,
    Task,
    ErrorRecord,
    SyncTaskRecord,
)

__all__ = [
    # Enums
    "JobStatus",
    "SyncTaskStatus",
    "ProgressStatus",
    "StatementKind",
    "TermKind",
    # Errors
    "ConsumerError",
    "DownloadError",
    "ParseError",
    "WriteError",
    "ProducerUnavailable",
    "NoDumpAvailable",
    # Models
    "RdfTerm",
    "Triple",
    "Changeset",
    "RemoteDeltaFileDescriptor",
    "RemoteDumpDescriptor",
    "Job",
    "Task",
    "ErrorRecord",
    "SyncTaskRecord",
]
