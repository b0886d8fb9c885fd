# ============================================================================
# CORE MODELS
# ============================================================================
# STATUS: Core - Pydantic models
# PURPOSE: Export data models for the delta consumer
# CREATED: 06 OCT 2026
# ============================================================================

from core.models.rdf import RdfTerm, Triple, Changeset
from core.models.remote_file import RemoteDeltaFileDescriptor, RemoteDumpDescriptor
from core.models.job import Job, Task, ErrorRecord
from core.models.sync_task import SyncTaskRecord

__all__ = [
    # RDF
    "RdfTerm",
    "Triple",
    "Changeset",
    # Producer files
    "RemoteDeltaFileDescriptor",
    "RemoteDumpDescriptor",
    # Bookkeeping
    "Job",
    "Task",
    "ErrorRecord",
    "SyncTaskRecord",
]
