# ============================================================================
# DUMP FILE LOADER
# ============================================================================
# STATUS: Core - Bulk bootstrap load
# PURPOSE: Download the current dataset dump and insert it line by line
# CREATED: 09 OCT 2026
# ============================================================================
"""
Dump File Loader

A dump is a newline-delimited statement file. Loading is insert-only: the
destination graph must be empty beforehand, which is the caller's
precondition and is not checked here.

The statement sequence is lazy and can only be restarted by downloading
the file again.
"""

import logging
from pathlib import Path
from typing import Iterator, List

from core.contracts import StatementKind
from core.errors import ParseError
from core.logging import log_context
from core.models import RemoteDumpDescriptor
from infrastructure.producer import ProducerClient
from services.statement_writer import StatementWriter

logger = logging.getLogger(__name__)


class DumpFileLoader:
    """Downloads a dump file and inserts its statements in batches."""

    def __init__(
        self,
        producer: ProducerClient,
        writer: StatementWriter,
        dump_dir: Path,
        batch_size: int = 100,
    ):
        self.producer = producer
        self.writer = writer
        self.dump_dir = Path(dump_dir)
        self.batch_size = batch_size

    def file_path(self, descriptor: RemoteDumpDescriptor) -> Path:
        return self.dump_dir / f"{descriptor.id}.ttl"

    async def resolve(self) -> RemoteDumpDescriptor:
        """Current dump of the producer. Raises NoDumpAvailable if none."""
        return await self.producer.get_latest_dump_file()

    def iter_statements(self, path: Path) -> Iterator[str]:
        """Yield the non-blank statement lines of a downloaded dump."""
        try:
            with open(path, "r", encoding="utf-8") as fh:
                for line in fh:
                    statement = line.strip()
                    if statement:
                        yield statement
        except (OSError, UnicodeDecodeError) as e:
            raise ParseError(f"Cannot read dump file {path}: {e}") from e

    async def load(self, descriptor: RemoteDumpDescriptor) -> int:
        """
        Download and insert the dump.

        Returns:
            Number of statements inserted

        Raises:
            DownloadError, ParseError, WriteError
        """
        path = self.file_path(descriptor)

        with log_context(file_id=descriptor.id):
            await self.producer.download(descriptor.id, path)
            logger.info(f"Start ingesting dump file {descriptor.id} stored at {path}")

            total = 0
            batch: List[str] = []
            for statement in self.iter_statements(path):
                batch.append(statement)
                if len(batch) >= self.batch_size:
                    await self.writer.apply(StatementKind.INSERT, batch)
                    total += len(batch)
                    batch = []
            if batch:
                await self.writer.apply(StatementKind.INSERT, batch)
                total += len(batch)

            logger.info(
                f"Successfully finished ingesting dump file {descriptor.id}: {total} statements"
            )
            path.unlink(missing_ok=True)
            return total


__all__ = ["DumpFileLoader"]
