"""
XPAF Data Models

Pydantic models for parser definitions (the schema) and for the relations
emitted when a document is parsed.

Schema models are frozen: they are built once at load time and shared
read-only by every document evaluation.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# Schema Models
# =============================================================================


class Cardinality(str, Enum):
    """Declared shape of a subject, object or annotation value."""

    ONE = "ONE"     # Zero or one result, duplicated across all relations
    MANY = "MANY"   # Exactly N results, N shared by every MANY field


class ExtractOp(BaseModel):
    """
    Extract a substring using a regular expression.

    The first capture group is extracted if the pattern has one, otherwise
    the whole match. Fails (voids the value) if the pattern does not match.
    """

    model_config = ConfigDict(frozen=True)

    regexp: str


class ReplaceOp(BaseModel):
    """Replace every match of regexp with rewrite. Never fails."""

    model_config = ConfigDict(frozen=True)

    regexp: str
    rewrite: str = ""


class PostProcessingOp(BaseModel):
    """A single post-processing operation. Exactly one op must be set."""

    model_config = ConfigDict(frozen=True)

    extract_op: ExtractOp | None = None
    replace_op: ReplaceOp | None = None

    @model_validator(mode="after")
    def _check_exactly_one(self) -> PostProcessingOp:
        set_ops = [op for op in (self.extract_op, self.replace_op) if op is not None]
        if len(set_ops) != 1:
            raise ValueError("post-processing op must set exactly one operation")
        return self


class QueryDef(BaseModel):
    """
    A named XPath query, referenced from templates as %name%.

    Post-processing ops run in order after url absolutization.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    query: str
    post_processing_ops: tuple[PostProcessingOp, ...] = ()


class QueryGroupDef(BaseModel):
    """
    A group of queries sharing a DOM root node.

    Member queries are appended to root_query and referenced as
    %group_name.query_name%. Results of two members at the same index are
    guaranteed to come from the same root node.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    root_query: str
    query_defs: tuple[QueryDef, ...] = ()


class AnnotationTemplate(BaseModel):
    """A {name, value} annotation attached to each relation of a template."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str
    value_cardinality: Cardinality


class RelationTemplate(BaseModel):
    """Template for the {subject, predicate, object} relations a parser emits."""

    model_config = ConfigDict(frozen=True)

    subject: str
    predicate: str
    object: str
    subject_cardinality: Cardinality
    object_cardinality: Cardinality
    annotation_tmpls: tuple[AnnotationTemplate, ...] = ()
    userdata: str | None = None
    url_regexp: str | None = None


class XpafParserDef(BaseModel):
    """A single parser: queries, groups and templates gated by url_regexp."""

    model_config = ConfigDict(frozen=True)

    parser_name: str
    url_regexp: str | None = None
    query_defs: tuple[QueryDef, ...] = ()
    query_group_defs: tuple[QueryGroupDef, ...] = ()
    relation_tmpls: tuple[RelationTemplate, ...] = ()
    # Identification only, never written to output
    userdata: str | None = None


class XpafParserDefs(BaseModel):
    """Ordered collection of parser definitions."""

    model_config = ConfigDict(frozen=True)

    parser_defs: tuple[XpafParserDef, ...] = ()


# =============================================================================
# Output Models
# =============================================================================


class Annotation(BaseModel):
    """A {name, value} pair attached to an emitted relation."""

    name: str
    value: str


class Relation(BaseModel):
    """An emitted relation."""

    subject: str
    predicate: str
    object: str
    annotations: list[Annotation] = Field(default_factory=list)
    userdata: str | None = None

    def annotation(self, name: str) -> str | None:
        """Get the value of the first annotation with this name."""
        for annotation in self.annotations:
            if annotation.name == name:
                return annotation.value
        return None


class ParsedDocument(BaseModel):
    """All relations extracted from one document."""

    url: str
    relations: list[Relation] = Field(default_factory=list)
    parser_names: list[str] = Field(default_factory=list)  # Parsers that ran, in order
