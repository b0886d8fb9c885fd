# ============================================================================
# ERROR TAXONOMY
# ============================================================================
# STATUS: Foundation - Exceptions raised across the consumer
# PURPOSE: Typed failures for download, parse, write and producer calls
# CREATED: 05 OCT 2026
# ============================================================================
"""
Error taxonomy.

File-level errors (DownloadError, ParseError, WriteError) are caught at the
delta pipeline boundary and reported through its completion callback.
Task-level errors (ProducerUnavailable, NoDumpAvailable) abort the owning
task, which is then closed as failed and recorded as an ErrorRecord.
"""

from typing import Optional


class ConsumerError(Exception):
    """Base exception for the delta consumer."""
    pass


class ConfigurationError(ConsumerError):
    """Raised when required configuration is missing or invalid."""
    pass


class StoreError(ConsumerError):
    """Raised when a query or update against the triple store fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class DownloadError(ConsumerError):
    """Transport failure while fetching a delta or dump file."""

    def __init__(self, message: str, file_id: Optional[str] = None, url: Optional[str] = None):
        self.file_id = file_id
        self.url = url
        super().__init__(message)


class ParseError(ConsumerError):
    """Malformed changeset or dump content."""

    def __init__(self, message: str, file_id: Optional[str] = None):
        self.file_id = file_id
        super().__init__(message)


class UnknownTermKindError(ParseError):
    """An RDF term carried a type tag outside the known set."""

    def __init__(self, term_type: Optional[str]):
        self.term_type = term_type
        super().__init__(f"Unknown RDF term type: {term_type!r}")


class WriteError(ConsumerError):
    """A store update failed for one statement batch."""

    def __init__(self, message: str, offset: int = 0, batch_size: int = 0):
        self.offset = offset
        self.batch_size = batch_size
        super().__init__(message)


class ProducerUnavailable(ConsumerError):
    """The producer's listing or dataset-resolution call failed."""

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        super().__init__(message)


class NoDumpAvailable(ConsumerError):
    """The producer publishes no current dataset to bootstrap from."""
    pass


class InitialSyncFailed(ConsumerError):
    """A mandatory initial sync did not complete."""
    pass


__all__ = [
    "ConsumerError",
    "ConfigurationError",
    "StoreError",
    "DownloadError",
    "ParseError",
    "UnknownTermKindError",
    "WriteError",
    "ProducerUnavailable",
    "NoDumpAvailable",
    "InitialSyncFailed",
]
