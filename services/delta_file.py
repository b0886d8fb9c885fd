# ============================================================================
# DELTA FILE CONSUMPTION
# ============================================================================
# STATUS: Core - Download, parse and apply one delta file
# PURPOSE: Turn a producer changeset file into ordered store writes
# CREATED: 08 OCT 2026
# ============================================================================
"""
Delta File Consumption

DeltaFileConsumer.consume() handles exactly one file:

1. Stream it to <scratch_dir>/<id>.json
2. Parse the JSON array into changesets
3. For each changeset in file order: apply inserts, then deletes
4. Report the outcome through the completion callback

Download, parse and write failures never escape consume(); they are
handed to the callback as the error argument. The scratch file is removed
after success and kept after a failure for diagnosis. There are no
retries here, that policy belongs to the sync task and the scheduler.
"""

import json
import logging
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

from pydantic import ValidationError

from core.contracts import StatementKind
from core.errors import DownloadError, ParseError, WriteError
from core.logging import log_context
from core.models import Changeset, RemoteDeltaFileDescriptor
from infrastructure.producer import ProducerClient
from services.statement_writer import StatementWriter

logger = logging.getLogger(__name__)

OnComplete = Callable[[RemoteDeltaFileDescriptor, bool, Optional[Exception]], Awaitable[None]]


def parse_changesets(content: str, file_id: Optional[str] = None) -> List[Changeset]:
    """
    Parse delta-file content.

    Raises:
        ParseError: not JSON, not an array, or a malformed changeset
    """
    try:
        data = json.loads(content)
    except ValueError as e:
        raise ParseError(f"Delta file {file_id} is not valid JSON: {e}", file_id=file_id) from e

    if not isinstance(data, list):
        raise ParseError(
            f"Delta file {file_id} must hold a JSON array, got {type(data).__name__}",
            file_id=file_id,
        )

    try:
        return [Changeset.model_validate(item) for item in data]
    except ValidationError as e:
        raise ParseError(f"Malformed changeset in {file_id}: {e}", file_id=file_id) from e


class DeltaFileConsumer:
    """Consumes delta files one at a time through a StatementWriter."""

    def __init__(
        self,
        producer: ProducerClient,
        writer: StatementWriter,
        scratch_dir: Path,
    ):
        self.producer = producer
        self.writer = writer
        self.scratch_dir = Path(scratch_dir)

    def scratch_path(self, descriptor: RemoteDeltaFileDescriptor) -> Path:
        return self.scratch_dir / f"{descriptor.id}.json"

    async def ingest(self, descriptor: RemoteDeltaFileDescriptor, path: Path) -> int:
        """
        Apply the changesets of a downloaded file in order.

        Returns:
            Number of changesets applied

        Raises:
            ParseError, WriteError: processing stops at the first failure
        """
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ParseError(f"Cannot read {path}: {e}", file_id=descriptor.id) from e

        changesets = parse_changesets(content, descriptor.id)
        for changeset in changesets:
            await self.writer.apply(StatementKind.INSERT, changeset.inserts)
            await self.writer.apply(StatementKind.DELETE, changeset.deletes)
        return len(changesets)

    async def consume(self, descriptor: RemoteDeltaFileDescriptor, on_complete: OnComplete) -> bool:
        """
        Download, parse and apply one delta file, then call `on_complete`.

        Returns:
            True if every changeset was applied
        """
        path = self.scratch_path(descriptor)

        with log_context(file_id=descriptor.id):
            try:
                await self.producer.download(descriptor.id, path)
            except DownloadError as e:
                logger.error(f"Something went wrong while downloading file {descriptor.id}: {e}")
                await on_complete(descriptor, False, e)
                return False

            logger.info(f"Start ingesting file {descriptor.id} stored at {path}")
            try:
                count = await self.ingest(descriptor, path)
            except (ParseError, WriteError) as e:
                logger.error(
                    f"Something went wrong while ingesting file {descriptor.id} "
                    f"stored at {path}: {e}"
                )
                await on_complete(descriptor, False, e)
                return False

            logger.info(
                f"Successfully finished ingesting file {descriptor.id} "
                f"({count} changesets) stored at {path}"
            )
            try:
                await on_complete(descriptor, True, None)
            finally:
                path.unlink(missing_ok=True)
            return True


__all__ = ["DeltaFileConsumer", "parse_changesets", "OnComplete"]
