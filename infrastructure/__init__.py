# ============================================================================
# INFRASTRUCTURE MODULE
# ============================================================================
# STATUS: Infrastructure - External HTTP collaborators
# PURPOSE: Triple store access and producer API client
# CREATED: 07 OCT 2026
# ============================================================================
"""
Infrastructure module for the delta consumer.

Provides:
- StoreClient / SparqlClient: query/update capability against the triple store
- ProducerClient: delta file listing, dump resolution and streamed downloads

Usage:
    from infrastructure import SparqlClient, ProducerClient

    store = SparqlClient(config.store)
    producer = ProducerClient(config.producer)
    files = await producer.get_unconsumed_files(since)
"""

from infrastructure.sparql import (
    StoreClient,
    SparqlClient,
    sparql_escape_string,
    sparql_escape_uri,
    sparql_escape_datetime,
)
from infrastructure.producer import ProducerClient

__all__ = [
    "StoreClient",
    "SparqlClient",
    "ProducerClient",
    "sparql_escape_string",
    "sparql_escape_uri",
    "sparql_escape_datetime",
]
