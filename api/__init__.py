# ============================================================================
# API MODULE
# ============================================================================
# STATUS: Core - FastAPI routes
# PURPOSE: HTTP control surface of the delta consumer
# CREATED: 12 OCT 2026
# ============================================================================
"""
API Module

FastAPI routes for ingest control and initial sync management.
"""

from .routes import router, set_services
from .schemas import (
    IngestResponse,
    IngestStatusResponse,
    CleanupResponse,
    MessageResponse,
)

__all__ = [
    "router",
    "set_services",
    "IngestResponse",
    "IngestStatusResponse",
    "CleanupResponse",
    "MessageResponse",
]
