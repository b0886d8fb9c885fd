# ============================================================================
# SYNC TASK RECORD
# ============================================================================
# STATUS: Core model - Persisted part of an incremental sync task
# PURPOSE: Row-like view of an ext:SyncTask resource
# CREATED: 06 OCT 2026
# ============================================================================
"""
Sync Task Record

Only status, creation time and the watermark (ext:deltaUntil) are stored.
Progress bookkeeping lives on the runtime SyncTask in services.sync_task.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from core.contracts import SyncTaskStatus


class SyncTaskRecord(BaseModel):
    """An ext:SyncTask as read from the store."""
    uri: str
    created: datetime
    status: SyncTaskStatus = Field(default=SyncTaskStatus.NOT_STARTED)
    delta_until: Optional[datetime] = Field(
        default=None,
        description="Creation time of the last delta file fully applied",
    )


__all__ = ["SyncTaskRecord"]
