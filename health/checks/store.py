# ============================================================================
# STORE HEALTH CHECK
# ============================================================================
# STATUS: Infrastructure - Triple store connectivity
# PURPOSE: Readiness depends on the SPARQL endpoint answering
# CREATED: 12 OCT 2026
# ============================================================================

import logging

from health.core import HealthCheck, HealthCheckResult
from infrastructure.sparql import SparqlClient

logger = logging.getLogger(__name__)


class StoreCheck(HealthCheck):
    """SPARQL endpoint answers a trivial ASK query."""

    name = "triple_store"
    timeout_seconds = 5.0
    required_for_ready = True

    def __init__(self, store: SparqlClient):
        self.store = store

    async def check(self) -> HealthCheckResult:
        endpoint = self.store.config.sparql_endpoint
        if await self.store.ping():
            return HealthCheckResult.healthy(endpoint=endpoint)
        return HealthCheckResult.unhealthy("SPARQL endpoint not answering", endpoint=endpoint)


__all__ = ["StoreCheck"]
