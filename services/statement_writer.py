# ============================================================================
# STATEMENT WRITER
# ============================================================================
# STATUS: Core - Batched writes against the target graph
# PURPOSE: Chunk add/remove statements into bounded INSERT/DELETE DATA updates
# CREATED: 08 OCT 2026
# ============================================================================
"""
Statement Writer

Splits a statement sequence into consecutive batches of at most
`batch_size` and issues one update per batch, sequentially:

    INSERT DATA { GRAPH <g> { s p o . s p o . ... } }

The store commits per batch. A failing batch stops the call and raises
WriteError; batches already written stay written, so callers get
at-least-once semantics. INSERT DATA of an existing triple and DELETE DATA
of an absent one are no-ops, which makes replaying a batch harmless.

Statements are either Triple objects, rendered term by term, or
pre-rendered statement strings (dump lines), passed through unchanged.
"""

import logging
import re
from typing import Iterable, List, Optional, Sequence, Union

from core.contracts import StatementKind, TermKind
from core.errors import ParseError, StoreError, UnknownTermKindError, WriteError
from core.models import RdfTerm, Triple
from infrastructure.sparql import StoreClient, sparql_escape_string, sparql_escape_uri

logger = logging.getLogger(__name__)

Statement = Union[Triple, str]

LANGUAGE_TAG = re.compile(r"[a-zA-Z]+(-[a-zA-Z0-9]+)*")


def render_term(term: RdfTerm, strict: bool = False) -> str:
    """
    Render one RDF term for inline SPARQL.

    Raises:
        UnknownTermKindError: in strict mode, for an unrecognised type tag
        ParseError: malformed language tag
    """
    kind = term.kind
    if kind == TermKind.URI:
        return sparql_escape_uri(term.value)
    if kind == TermKind.TYPED_LITERAL:
        return f"{sparql_escape_string(term.value)}^^{sparql_escape_uri(term.datatype)}"
    if kind == TermKind.LANG_LITERAL:
        if not LANGUAGE_TAG.fullmatch(term.lang):
            raise ParseError(f"Invalid language tag {term.lang!r}")
        return f"{sparql_escape_string(term.value)}@{term.lang}"
    if kind == TermKind.LITERAL:
        return sparql_escape_string(term.value)

    if strict:
        raise UnknownTermKindError(term.type)
    logger.warning(f"Don't know how to escape type {term.type!r}. Will escape as a string.")
    return sparql_escape_string(term.value)


def render_statement(statement: Statement, strict: bool = False) -> str:
    """Render a triple as 's p o .', or pass a raw statement line through."""
    if isinstance(statement, str):
        return statement.strip()
    return (
        f"{render_term(statement.subject, strict)} "
        f"{render_term(statement.predicate, strict)} "
        f"{render_term(statement.object, strict)} ."
    )


def chunk(items: Sequence, size: int) -> Iterable[Sequence]:
    """Consecutive slices of at most `size` items, order preserved."""
    for offset in range(0, len(items), size):
        yield items[offset:offset + size]


class StatementWriter:
    """
    Writes statement batches to a fixed graph.

    Args:
        store: Store capability used for every update
        graph: Target graph URI
        batch_size: Maximum statements per update
        strict: Raise on unknown term kinds instead of warning
        scope: Optional mu-call-scope-id sent with each update
    """

    def __init__(
        self,
        store: StoreClient,
        graph: str,
        batch_size: int = 100,
        strict: bool = False,
        scope: Optional[str] = None,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.store = store
        self.graph = graph
        self.batch_size = batch_size
        self.strict = strict
        self.scope = scope

    def build_update(self, kind: StatementKind, statements: Sequence[Statement]) -> str:
        body = "\n        ".join(render_statement(s, self.strict) for s in statements)
        return f"""
    {kind.sparql_keyword} {{
      GRAPH {sparql_escape_uri(self.graph)} {{
        {body}
      }}
    }}
    """

    async def apply(self, kind: StatementKind, statements: Sequence[Statement]) -> None:
        """
        Write `statements` in order, one update per batch.

        Raises:
            WriteError: a batch update failed; later batches were not sent
            UnknownTermKindError: strict mode and an unknown term kind
            ParseError: a term cannot be rendered
        """
        statements = list(statements)
        if not statements:
            return

        verb = "Inserting" if kind == StatementKind.INSERT else "Deleting"
        for index, batch in enumerate(chunk(statements, self.batch_size)):
            offset = index * self.batch_size
            logger.debug(f"{verb} triples in batch: {offset}-{offset + len(batch)}")
            update = self.build_update(kind, batch)
            try:
                await self.store.update(update, scope=self.scope)
            except StoreError as e:
                raise WriteError(
                    f"{kind.value} batch at offset {offset} failed: {e}",
                    offset=offset,
                    batch_size=len(batch),
                ) from e


__all__ = ["StatementWriter", "render_term", "render_statement", "chunk"]
