# ============================================================================
# RDF TERM MODELS
# ============================================================================
# STATUS: Core model - Terms, triples and changesets from delta files
# PURPOSE: Typed view of the producer's delta-file JSON
# CREATED: 06 OCT 2026
# ============================================================================
"""
RDF Term Models

A delta file is a JSON array of changesets:

    [
      {
        "inserts": [
          {"subject":   {"type": "uri", "value": "http://..."},
           "predicate": {"type": "uri", "value": "http://..."},
           "object":    {"type": "literal", "value": "Gent", "xml:lang": "nl"}}
        ],
        "deletes": []
      }
    ]

The producer tags each term with a free-form "type" string. RdfTerm keeps
that raw tag and exposes the classified TermKind; an unrecognised tag has
no kind and is left to the writer's policy.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.contracts import TermKind


class RdfTerm(BaseModel):
    """One subject, predicate or object as published by the producer."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    type: Optional[str] = Field(default=None, description="Producer type tag")
    value: str = Field(..., description="Lexical value or URI")
    datatype: Optional[str] = Field(default=None, description="Datatype URI for typed literals")
    lang: Optional[str] = Field(default=None, alias="xml:lang", description="Language tag")

    @property
    def kind(self) -> Optional[TermKind]:
        """Classify the term; None when the type tag is unknown."""
        if self.type == "uri":
            return TermKind.URI
        if self.type in ("literal", "typed-literal"):
            if self.datatype:
                return TermKind.TYPED_LITERAL
            if self.lang:
                return TermKind.LANG_LITERAL
            return TermKind.LITERAL
        return None

    @classmethod
    def uri(cls, value: str) -> "RdfTerm":
        return cls(type="uri", value=value)

    @classmethod
    def literal(
        cls,
        value: str,
        datatype: Optional[str] = None,
        lang: Optional[str] = None,
    ) -> "RdfTerm":
        return cls(
            type="typed-literal" if datatype else "literal",
            value=value,
            datatype=datatype,
            lang=lang,
        )


class Triple(BaseModel):
    """A single statement."""

    model_config = ConfigDict(frozen=True)

    subject: RdfTerm
    predicate: RdfTerm
    object: RdfTerm


class Changeset(BaseModel):
    """One {inserts, deletes} group inside a delta file."""

    inserts: List[Triple] = Field(default_factory=list)
    deletes: List[Triple] = Field(default_factory=list)


__all__ = ["RdfTerm", "Triple", "Changeset"]
