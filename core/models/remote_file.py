# ============================================================================
# REMOTE FILE DESCRIPTORS
# ============================================================================
# STATUS: Core model - Producer-published files
# PURPOSE: Identify delta files and dump files available for download
# CREATED: 06 OCT 2026
# ============================================================================
"""
Remote File Descriptors

Immutable views of what the producer publishes. They are never persisted
locally; a descriptor lives for the duration of one consumption.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RemoteDeltaFileDescriptor(BaseModel):
    """A changeset file available for download."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Producer file id")
    created: datetime = Field(..., description="Creation timestamp, the watermark candidate")
    name: Optional[str] = Field(default=None, description="File name on the producer")

    @field_validator("created")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "RemoteDeltaFileDescriptor":
        """Build from a JSON:API resource: {id, attributes: {created, name}}."""
        attributes = data.get("attributes") or {}
        return cls(
            id=data["id"],
            created=attributes["created"],
            name=attributes.get("name"),
        )


class RemoteDumpDescriptor(BaseModel):
    """The single currently-published full-dataset snapshot."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Producer file id of the dump")
    issued: Optional[datetime] = Field(
        default=None,
        description="Publication timestamp of the dataset, seeds the first watermark",
    )


__all__ = ["RemoteDeltaFileDescriptor", "RemoteDumpDescriptor"]
