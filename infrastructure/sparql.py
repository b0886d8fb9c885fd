# ============================================================================
# SPARQL STORE CLIENT
# ============================================================================
# STATUS: Infrastructure - Triple store access over HTTP
# PURPOSE: query/update capability injected into every repository
# CREATED: 07 OCT 2026
# ============================================================================
"""
SPARQL Store Client

StoreClient is the capability every component receives explicitly:

    result = await store.query("SELECT ?s WHERE { ?s ?p ?o } LIMIT 1")
    await store.update("INSERT DATA { ... }")

SparqlClient implements it against a SPARQL endpoint with httpx. Requests
carry the mu-auth-sudo header so they bypass authorization, and an optional
mu-call-scope-id so downstream services can tell where a write came from.

The escape helpers render values for inline use in SPARQL text.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from core.config import StoreConfig, parse_timestamp
from core.errors import StoreError

logger = logging.getLogger(__name__)

XSD_DATETIME = "http://www.w3.org/2001/XMLSchema#dateTime"


# ============================================================================
# ESCAPING
# ============================================================================

def sparql_escape_string(value: str) -> str:
    """Render a plain string literal."""
    escaped = (
        str(value)
        .replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def sparql_escape_uri(value: str) -> str:
    """Render an IRI reference."""
    escaped = str(value)
    for char in ("\\", '"', "<", ">"):
        escaped = escaped.replace(char, "\\" + char)
    return f"<{escaped}>"


def sparql_escape_datetime(value: datetime) -> str:
    """Render an xsd:dateTime literal. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return f'"{value.isoformat()}"^^{sparql_escape_uri(XSD_DATETIME)}'


# ============================================================================
# RESULT HELPERS
# ============================================================================

def bindings(result: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Bindings list of a SPARQL JSON result, empty when absent."""
    return (result or {}).get("results", {}).get("bindings", [])


def binding_value(row: Dict[str, Any], name: str) -> Optional[str]:
    """Value of one variable in a binding row, None if unbound."""
    cell = row.get(name)
    return cell.get("value") if cell else None


def binding_datetime(row: Dict[str, Any], name: str) -> Optional[datetime]:
    value = binding_value(row, name)
    return parse_timestamp(value) if value else None


# ============================================================================
# CLIENT
# ============================================================================

class StoreClient(ABC):
    """Read/write capability against the triple store."""

    @abstractmethod
    async def query(self, statement: str) -> Dict[str, Any]:
        """Run a read query and return the SPARQL JSON result."""

    @abstractmethod
    async def update(self, statement: str, scope: Optional[str] = None) -> None:
        """Run a write statement. Raises StoreError on failure."""


class SparqlClient(StoreClient):
    """
    httpx-backed SPARQL client.

    Owns one AsyncClient for the application lifetime; call aclose() on
    shutdown.
    """

    def __init__(
        self,
        config: StoreConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout_seconds),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self, accept: str, scope: Optional[str] = None) -> Dict[str, str]:
        headers = {"Accept": accept, "mu-auth-sudo": "true"}
        if scope:
            headers["mu-call-scope-id"] = scope
        return headers

    async def _post(self, data: Dict[str, str], headers: Dict[str, str]) -> httpx.Response:
        try:
            response = await self._client.post(
                self.config.sparql_endpoint,
                data=data,
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise StoreError(f"SPARQL endpoint unreachable: {e}") from e

        if response.status_code >= 400:
            raise StoreError(
                f"SPARQL endpoint returned {response.status_code}: {response.text[:500]}",
                status_code=response.status_code,
            )
        return response

    async def query(self, statement: str) -> Dict[str, Any]:
        response = await self._post(
            {"query": statement},
            self._headers("application/sparql-results+json"),
        )
        try:
            return response.json()
        except ValueError as e:
            raise StoreError(f"SPARQL endpoint returned invalid JSON: {e}") from e

    async def update(self, statement: str, scope: Optional[str] = None) -> None:
        await self._post(
            {"update": statement},
            self._headers("application/sparql-results+json", scope),
        )

    async def ping(self) -> bool:
        """Return True if the store answers a trivial ASK query."""
        try:
            await self.query("ASK { ?s ?p ?o }")
            return True
        except StoreError:
            return False

    async def wait_until_ready(self) -> None:
        """
        Block until the store answers, retrying at a fixed interval.

        Raises:
            StoreError: if the store is still down after ready_max_attempts
        """
        for attempt in range(1, self.config.ready_max_attempts + 1):
            if await self.ping():
                logger.info("Triple store is up")
                return
            logger.info(
                f"Waiting for triple store at {self.config.sparql_endpoint} "
                f"(attempt {attempt}/{self.config.ready_max_attempts})"
            )
            await asyncio.sleep(self.config.ready_retry_seconds)

        raise StoreError(
            f"Triple store at {self.config.sparql_endpoint} did not become ready"
        )


__all__ = [
    "StoreClient",
    "SparqlClient",
    "sparql_escape_string",
    "sparql_escape_uri",
    "sparql_escape_datetime",
    "bindings",
    "binding_value",
    "binding_datetime",
]
