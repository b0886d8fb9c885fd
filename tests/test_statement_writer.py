# ============================================================================
# STATEMENT WRITER TESTS
# ============================================================================
# STATUS: Tests - Term rendering and batched writes
# PURPOSE: Verify batch sizing, ordering and failure semantics
# CREATED: 14 OCT 2026
# ============================================================================
"""
Statement Writer Tests

Covers:
1. Term rendering per TermKind, strict vs lenient unknown kinds
2. ceil(N/B) updates per apply(), in order, with correct keyword and graph
3. A failing batch stops the call and raises WriteError with its offset
4. Empty statement lists issue no update

Run with:
    pytest tests/test_statement_writer.py -v
"""

import asyncio
import pytest
from unittest.mock import AsyncMock

from core.contracts import StatementKind
from core.errors import ParseError, StoreError, UnknownTermKindError, WriteError
from core.models import RdfTerm, Triple
from services.statement_writer import StatementWriter, chunk, render_statement, render_term

GRAPH = "http://mu.semte.ch/graphs/public"


def _triple(i: int) -> Triple:
    return Triple(
        subject=RdfTerm.uri(f"http://data.example/s/{i}"),
        predicate=RdfTerm.uri("http://purl.org/dc/terms/title"),
        object=RdfTerm.literal(f"title {i}"),
    )


# ============================================================================
# RENDERING
# ============================================================================

class TestRenderTerm:
    """Rendering of individual terms."""

    def test_uri(self):
        assert render_term(RdfTerm.uri("http://a/b")) == "<http://a/b>"

    def test_plain_literal(self):
        assert render_term(RdfTerm.literal("Gent")) == '"Gent"'

    def test_typed_literal(self):
        term = RdfTerm.literal("42", datatype="http://www.w3.org/2001/XMLSchema#integer")
        assert render_term(term) == '"42"^^<http://www.w3.org/2001/XMLSchema#integer>'

    def test_lang_literal_from_producer_json(self):
        term = RdfTerm.model_validate({"type": "literal", "value": "Gent", "xml:lang": "nl"})
        assert render_term(term) == '"Gent"@nl'

    def test_lang_literal_with_subtag(self):
        term = RdfTerm.model_validate({"type": "literal", "value": "Gent", "xml:lang": "nl-BE"})
        assert render_term(term) == '"Gent"@nl-BE'

    @pytest.mark.parametrize("lang", ["nl> } ; DROP ALL", "nl\n", "nl-", "-nl", "n l"])
    def test_malformed_lang_tag_raises(self, lang):
        term = RdfTerm.model_validate({"type": "literal", "value": "Gent", "xml:lang": lang})
        with pytest.raises(ParseError):
            render_term(term)

    def test_literal_escaping(self):
        term = RdfTerm.literal('say "hi"\nbye')
        assert render_term(term) == '"say \\"hi\\"\\nbye"'

    def test_unknown_kind_lenient_renders_string(self):
        term = RdfTerm(type="bnode", value="b0")
        assert render_term(term) == '"b0"'

    def test_unknown_kind_strict_raises(self):
        term = RdfTerm(type="bnode", value="b0")
        with pytest.raises(UnknownTermKindError):
            render_term(term, strict=True)

    def test_raw_statement_passthrough(self):
        line = '<http://a> <http://b> "c" .\n'
        assert render_statement(line) == '<http://a> <http://b> "c" .'

    def test_triple_statement(self):
        assert render_statement(_triple(1)) == (
            '<http://data.example/s/1> <http://purl.org/dc/terms/title> "title 1" .'
        )


class TestChunk:

    def test_chunk_sizes(self):
        assert [len(c) for c in chunk(list(range(250)), 100)] == [100, 100, 50]

    def test_chunk_empty(self):
        assert list(chunk([], 10)) == []


# ============================================================================
# BATCHED WRITES
# ============================================================================

class TestStatementWriter:
    """Batch sizing and failure semantics of apply()."""

    def test_rejects_non_positive_batch_size(self):
        with pytest.raises(ValueError):
            StatementWriter(AsyncMock(), GRAPH, batch_size=0)

    def test_250_statements_in_batches_of_100(self):
        store = AsyncMock()
        writer = StatementWriter(store, GRAPH, batch_size=100)
        statements = [_triple(i) for i in range(250)]

        asyncio.run(writer.apply(StatementKind.INSERT, statements))

        assert store.update.await_count == 3
        updates = [call.args[0] for call in store.update.await_args_list]
        assert [u.count("<http://purl.org/dc/terms/title>") for u in updates] == [100, 100, 50]
        # Order preserved across batches
        assert "<http://data.example/s/0>" in updates[0]
        assert "<http://data.example/s/99>" in updates[0]
        assert "<http://data.example/s/100>" in updates[1]
        assert "<http://data.example/s/249>" in updates[2]

    def test_keyword_and_graph(self):
        store = AsyncMock()
        writer = StatementWriter(store, GRAPH, batch_size=10)

        asyncio.run(writer.apply(StatementKind.DELETE, [_triple(1)]))

        update = store.update.await_args.args[0]
        assert "DELETE DATA" in update
        assert f"GRAPH <{GRAPH}>" in update

    def test_scope_forwarded(self):
        store = AsyncMock()
        writer = StatementWriter(store, GRAPH, scope="http://scope/initial")

        asyncio.run(writer.apply(StatementKind.INSERT, [_triple(1)]))

        assert store.update.await_args.kwargs["scope"] == "http://scope/initial"

    def test_empty_sequence_is_noop(self):
        store = AsyncMock()
        writer = StatementWriter(store, GRAPH)

        asyncio.run(writer.apply(StatementKind.INSERT, []))

        store.update.assert_not_awaited()

    def test_failing_batch_stops_remaining(self):
        store = AsyncMock()
        store.update.side_effect = [None, StoreError("boom", status_code=500), None]
        writer = StatementWriter(store, GRAPH, batch_size=100)

        with pytest.raises(WriteError) as exc_info:
            asyncio.run(writer.apply(StatementKind.INSERT, [_triple(i) for i in range(250)]))

        assert exc_info.value.offset == 100
        assert exc_info.value.batch_size == 100
        assert store.update.await_count == 2

    def test_strict_unknown_kind_propagates(self):
        store = AsyncMock()
        writer = StatementWriter(store, GRAPH, strict=True)
        bad = Triple(
            subject=RdfTerm.uri("http://a"),
            predicate=RdfTerm.uri("http://b"),
            object=RdfTerm(type="weird", value="x"),
        )

        with pytest.raises(UnknownTermKindError):
            asyncio.run(writer.apply(StatementKind.INSERT, [bad]))
        store.update.assert_not_awaited()
