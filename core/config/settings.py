# ============================================================================
# CONSUMER SETTINGS
# ============================================================================
# STATUS: Core - Environment-sourced configuration
# PURPOSE: Producer endpoints, store graphs, ingest timing, feature flags
# CREATED: 05 OCT 2026
# ============================================================================
"""
Consumer Settings

Every option is read from the environment once, into immutable dataclasses.

Design:
- One frozen dataclass per concern, each with from_env()
- ConsumerConfig aggregates them and validates required values
- get_config() caches the instance; reset_config() clears it (for testing)
"""

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from core.errors import ConfigurationError


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() == "true"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing 'Z'. Naive values are UTC."""
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ============================================================================
# PRODUCER
# ============================================================================

@dataclass(frozen=True)
class ProducerConfig:
    """
    Where the producer publishes delta files and dumps.

    Paths are appended to base_url; download_file_path carries an ':id'
    placeholder replaced by the file id.
    """
    base_url: str = "https://api.loket.lblod.info"
    files_path: str = "/sync/mandatarissen/files"
    dataset_path: str = "/datasets"
    dataset_subject: str = ""
    download_file_path: str = "/files/:id/download"
    timeout_seconds: float = 300.0

    @property
    def files_endpoint(self) -> str:
        return f"{self.base_url}{self.files_path}"

    @property
    def dataset_endpoint(self) -> str:
        return f"{self.base_url}{self.dataset_path}"

    def download_url(self, file_id: str) -> str:
        return f"{self.base_url}{self.download_file_path}".replace(":id", file_id)

    @classmethod
    def from_env(cls) -> "ProducerConfig":
        """Create from environment variables."""
        return cls(
            base_url=os.getenv("SYNC_BASE_URL", "https://api.loket.lblod.info").rstrip("/"),
            files_path=os.getenv("SYNC_FILES_PATH", "/sync/mandatarissen/files"),
            dataset_path=os.getenv("SYNC_DATASET_PATH", "/datasets"),
            dataset_subject=os.getenv("SYNC_DATASET_SUBJECT", ""),
            download_file_path=os.getenv("DOWNLOAD_FILE_PATH", "/files/:id/download"),
            timeout_seconds=_env_float("PRODUCER_TIMEOUT_SECONDS", 300.0),
        )


# ============================================================================
# STORE
# ============================================================================

@dataclass(frozen=True)
class StoreConfig:
    """Triple store endpoint and the graphs the consumer writes to."""
    sparql_endpoint: str = "http://database:8890/sparql"
    application_graph: str = "http://mu.semte.ch/application"
    jobs_graph: str = "http://mu.semte.ch/graphs/system/jobs"
    initial_sync_scope: str = (
        "http://redpencil.data.gift/id/concept/muScope/deltas/consumer/initialSync"
    )
    timeout_seconds: float = 60.0
    ready_retry_seconds: float = 2.0
    ready_max_attempts: int = 60

    @classmethod
    def from_env(cls) -> "StoreConfig":
        """Create from environment variables."""
        return cls(
            sparql_endpoint=os.getenv("MU_SPARQL_ENDPOINT", "http://database:8890/sparql"),
            application_graph=os.getenv("MU_APPLICATION_GRAPH", "http://mu.semte.ch/application"),
            jobs_graph=os.getenv("JOBS_GRAPH", "http://mu.semte.ch/graphs/system/jobs"),
            initial_sync_scope=os.getenv(
                "MU_CALL_SCOPE_ID_INITIAL_SYNC",
                "http://redpencil.data.gift/id/concept/muScope/deltas/consumer/initialSync",
            ),
            timeout_seconds=_env_float("STORE_TIMEOUT_SECONDS", 60.0),
            ready_retry_seconds=_env_float("STORE_READY_RETRY_SECONDS", 2.0),
            ready_max_attempts=_env_int("STORE_READY_MAX_ATTEMPTS", 60),
        )


# ============================================================================
# INGEST
# ============================================================================

@dataclass(frozen=True)
class IngestConfig:
    """
    Timing, batching and feature flags for ingestion.

    max_backoff_ms caps the delay applied after consecutive failed
    sync tasks (interval_ms * 2**failures).
    """
    interval_ms: int = 60000
    max_backoff_ms: int = 900000
    batch_size: int = 100
    scratch_dir: Path = Path("/tmp")
    dumpfile_folder: str = "dumpfiles"
    job_creator_uri: str = ""
    initial_sync_job_operation: str = ""
    disable_initial_sync: bool = False
    disable_delta_ingest: bool = False
    start_from_delta_timestamp: Optional[datetime] = None
    halt_on_initial_sync_failure: bool = False
    strict_term_kinds: bool = False

    @property
    def dump_dir(self) -> Path:
        return self.scratch_dir / self.dumpfile_folder

    @classmethod
    def from_env(cls) -> "IngestConfig":
        """Create from environment variables."""
        start_from = os.getenv("START_FROM_DELTA_TIMESTAMP")
        batch_size = _env_int("BATCH_SIZE", 100)
        return cls(
            interval_ms=_env_int("INGEST_INTERVAL_MS", 60000),
            max_backoff_ms=_env_int("INGEST_MAX_BACKOFF_MS", 900000),
            batch_size=batch_size if batch_size > 0 else 100,
            scratch_dir=Path(os.getenv("SCRATCH_DIR", "/tmp")),
            dumpfile_folder=os.getenv("DUMPFILE_FOLDER", "dumpfiles"),
            job_creator_uri=os.getenv("JOB_CREATOR_URI", ""),
            initial_sync_job_operation=os.getenv("INITIAL_SYNC_JOB_OPERATION", ""),
            disable_initial_sync=_env_flag("DISABLE_INITIAL_SYNC"),
            disable_delta_ingest=_env_flag("DISABLE_DELTA_INGEST"),
            start_from_delta_timestamp=parse_timestamp(start_from) if start_from else None,
            halt_on_initial_sync_failure=_env_flag("HALT_ON_INITIAL_SYNC_FAILURE"),
            strict_term_kinds=_env_flag("STRICT_TERM_KINDS"),
        )


# ============================================================================
# AGGREGATE
# ============================================================================

@dataclass(frozen=True)
class ConsumerConfig:
    """Container for all consumer settings."""
    producer: ProducerConfig = field(default_factory=ProducerConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    ingest: IngestConfig = field(default_factory=IngestConfig)

    @classmethod
    def from_env(cls) -> "ConsumerConfig":
        """Create all settings from environment variables."""
        return cls(
            producer=ProducerConfig.from_env(),
            store=StoreConfig.from_env(),
            ingest=IngestConfig.from_env(),
        )

    def missing_required(self) -> List[str]:
        """Names of required variables that are not set."""
        missing = []
        if not self.producer.dataset_subject:
            missing.append("SYNC_DATASET_SUBJECT")
        if not self.ingest.job_creator_uri:
            missing.append("JOB_CREATOR_URI")
        if not self.ingest.initial_sync_job_operation:
            missing.append("INITIAL_SYNC_JOB_OPERATION")
        return missing

    def validate(self) -> None:
        """Raise ConfigurationError if any required variable is missing."""
        missing = self.missing_required()
        if missing:
            raise ConfigurationError(f"Expected {', '.join(missing)} to be provided.")


_config: Optional[ConsumerConfig] = None


def get_config() -> ConsumerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ConsumerConfig.from_env()
    return _config


def reset_config() -> None:
    """Reset configuration (for testing)."""
    global _config
    _config = None


__all__ = [
    "ProducerConfig",
    "StoreConfig",
    "IngestConfig",
    "ConsumerConfig",
    "get_config",
    "reset_config",
    "parse_timestamp",
]
