"""
Compiled Parser Definitions

The compiled, immutable form of a parser definition. Reference strings from
templates ("%name%", "%group.name%", "/inline/query", literals) are resolved
once at load time into typed references, so evaluation dispatches on type
instead of re-parsing strings for every document.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from xpaf.models import Cardinality

if TYPE_CHECKING:
    from xpaf.evaluation.post_processing import PostProcessingPipeline


# =============================================================================
# Value References
# =============================================================================


@dataclass(frozen=True)
class LiteralRef:
    """A literal string value."""

    value: str


@dataclass(frozen=True)
class NamedQueryRef:
    """Reference to a parser-level query, by index."""

    index: int
    name: str


@dataclass(frozen=True)
class GroupQueryRef:
    """Reference to a query inside a query group, by indices."""

    group_index: int
    query_index: int
    name: str


@dataclass(frozen=True)
class InlineQuery:
    """An XPath query written directly in a template."""

    query: str


ValueRef = Union[LiteralRef, NamedQueryRef, GroupQueryRef, InlineQuery]


def describe_ref(ref: ValueRef) -> str:
    """Human readable form of a reference, for logging."""
    if isinstance(ref, LiteralRef):
        return repr(ref.value)
    if isinstance(ref, InlineQuery):
        return ref.query
    return f"%{ref.name}%"


# =============================================================================
# Compiled Definitions
# =============================================================================


@dataclass(frozen=True)
class CompiledQuery:
    name: str
    query: str
    pipeline: PostProcessingPipeline


@dataclass(frozen=True)
class CompiledGroup:
    name: str
    root_query: str
    queries: tuple[CompiledQuery, ...]


@dataclass(frozen=True)
class CompiledAnnotation:
    name: str
    value: ValueRef
    cardinality: Cardinality


@dataclass(frozen=True)
class CompiledTemplate:
    """A relation template with all references resolved."""

    index: int
    subject: ValueRef
    predicate: str
    object: ValueRef
    subject_cardinality: Cardinality
    object_cardinality: Cardinality
    annotations: tuple[CompiledAnnotation, ...] = ()
    userdata: str | None = None
    url_pattern: re.Pattern | None = None

    @property
    def label(self) -> str:
        return (
            f"[{self.index}] {describe_ref(self.subject)} "
            f"{self.predicate} {describe_ref(self.object)}"
        )


@dataclass(frozen=True)
class CompiledParser:
    name: str
    url_pattern: re.Pattern | None
    queries: tuple[CompiledQuery, ...]
    groups: tuple[CompiledGroup, ...]
    templates: tuple[CompiledTemplate, ...]
    userdata: str | None = None
