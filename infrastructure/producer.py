# ============================================================================
# PRODUCER HTTP CLIENT
# ============================================================================
# STATUS: Infrastructure - Read-only client for the delta producer
# PURPOSE: List delta files, resolve the current dump, stream downloads
# CREATED: 07 OCT 2026
# ============================================================================
"""
Producer HTTP Client

Async httpx client for the producer's JSON:API endpoints:

- GET {files}?since=<ISO-8601>               -> delta file listing
- GET {datasets}?filter[...]                  -> current dataset
- GET {base}/{distribution link}?include=subject -> dump file id
- GET {download with :id}                     -> raw bytes

Listing and dataset failures raise ProducerUnavailable; download failures
raise DownloadError. Downloads are streamed chunk by chunk to disk.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from core.config import ProducerConfig, parse_timestamp
from core.errors import DownloadError, NoDumpAvailable, ProducerUnavailable
from core.models import RemoteDeltaFileDescriptor, RemoteDumpDescriptor

logger = logging.getLogger(__name__)

JSON_API = "application/vnd.api+json"


class ProducerClient:
    """Async HTTP client for the producer."""

    def __init__(
        self,
        config: ProducerConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout_seconds),
            transport=transport,
            follow_redirects=True,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, url: str, params: Dict[str, str]) -> Dict[str, Any]:
        """GET a JSON:API document, mapping every failure to ProducerUnavailable."""
        try:
            response = await self._client.get(url, params=params, headers={"Accept": JSON_API})
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            raise ProducerUnavailable(f"Request to {url} failed: {e}", url=url) from e
        except ValueError as e:
            raise ProducerUnavailable(f"Invalid JSON from {url}: {e}", url=url) from e

    # ========================================================================
    # DELTA FILES
    # ========================================================================

    async def get_unconsumed_files(self, since: datetime) -> List[RemoteDeltaFileDescriptor]:
        """
        List delta files published after `since`, oldest first.

        The producer is expected to return them in ascending order; they
        are sorted here regardless so consumption order never depends on it.
        """
        if since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)
        url = self.config.files_endpoint
        document = await self._get_json(url, {"since": since.isoformat()})

        try:
            files = [RemoteDeltaFileDescriptor.from_api(item) for item in document.get("data", [])]
        except (KeyError, TypeError, ValueError) as e:
            raise ProducerUnavailable(f"Unexpected file listing from {url}: {e}", url=url) from e

        files.sort(key=lambda f: f.created)
        logger.info(f"Producer lists {len(files)} delta files since {since.isoformat()}")
        return files

    # ========================================================================
    # DUMP
    # ========================================================================

    async def get_latest_dump_file(self) -> RemoteDumpDescriptor:
        """
        Resolve the dump file of the dataset that has no newer version.

        Raises:
            NoDumpAvailable: the producer publishes no current dataset
            ProducerUnavailable: any request failed or returned junk
        """
        url = self.config.dataset_endpoint
        params = {"filter[:has-no:next-version]": "yes"}
        if self.config.dataset_subject:
            params["filter[subject]"] = self.config.dataset_subject

        logger.info(f"Retrieving latest dataset from {url}")
        datasets = await self._get_json(url, params)
        if not datasets.get("data"):
            raise NoDumpAvailable(f"No dataset was found at {url}")

        dataset = datasets["data"][0]
        try:
            related = dataset["relationships"]["distributions"]["links"]["related"]
        except (KeyError, TypeError) as e:
            raise ProducerUnavailable(f"Dataset without distribution link at {url}", url=url) from e

        issued_raw = (dataset.get("attributes") or {}).get("issued")
        issued = parse_timestamp(issued_raw) if issued_raw else None

        distribution_url = f"{self.config.base_url}/{related.lstrip('/')}"
        logger.info(f"Retrieving distribution from {distribution_url}")
        distributions = await self._get_json(distribution_url, {"include": "subject"})

        try:
            subject = distributions["data"][0]["relationships"]["subject"]["data"]
            return RemoteDumpDescriptor(id=subject["id"], issued=issued)
        except (KeyError, IndexError, TypeError) as e:
            raise NoDumpAvailable(f"Distribution at {distribution_url} has no subject file") from e

    # ========================================================================
    # DOWNLOAD
    # ========================================================================

    async def download(self, file_id: str, destination: Path) -> Path:
        """
        Stream a producer file to `destination`.

        A partially written file is left in place when the transfer fails.

        Raises:
            DownloadError: transport failure, non-2xx status or local I/O error
        """
        url = self.config.download_url(file_id)
        destination.parent.mkdir(parents=True, exist_ok=True)
        size = 0

        try:
            async with self._client.stream("GET", url) as response:
                response.raise_for_status()
                with open(destination, "wb") as fh:
                    async for chunk in response.aiter_bytes():
                        fh.write(chunk)
                        size += len(chunk)
        except httpx.HTTPError as e:
            raise DownloadError(f"Download of {url} failed: {e}", file_id=file_id, url=url) from e
        except OSError as e:
            raise DownloadError(
                f"Could not write {destination}: {e}", file_id=file_id, url=url
            ) from e

        logger.debug(f"Downloaded {size} bytes from {url} to {destination}")
        return destination


__all__ = ["ProducerClient"]
