"""
Query Group Resolver

Evaluates a group's root query once, then evaluates every member query
relative to each root node. The result for each member query is a sequence
with one entry per root, so entries at the same index across members always
come from the same root node.

This is what prevents cross-contamination between sibling structures:

    <div class="item"><b>foo_1</b></div>
    <div class="item"><b>foo_2</b><img src="bar_a"></div>
    <div class="item"><img src="bar_b"></div>

Queried independently, names [foo_1, foo_2] and images [bar_a, bar_b] would
wrongly pair foo_1 with bar_a. Grouped under //div[@class="item"], names are
[foo_1, foo_2, VOID] and images are [VOID, bar_a, bar_b].
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from xpaf.document import Document, XPathResultType
from xpaf.evaluation.results import VOID, ResultValue, xpath_result_values
from xpaf.exceptions import GroupCardinalityError, QueryResultTypeError
from xpaf.schema.references import CompiledGroup, CompiledQuery

logger = structlog.get_logger(__name__)


@dataclass
class ResolvedGroup:
    """Per-document results of a query group, aligned by root index."""

    name: str
    root_count: int
    results: list[list[ResultValue]] = field(default_factory=list)  # By query index

    def get(self, query_index: int) -> list[ResultValue]:
        return self.results[query_index]


def relative_query(query: str) -> str:
    """Anchor a member query to its root node."""
    return "." + query


def _resolve_member(
    document: Document,
    group: CompiledGroup,
    query: CompiledQuery,
    root_index: int,
    root,
) -> ResultValue:
    result = document.evaluate(relative_query(query.query), context=root)
    where = f"{group.name}.{query.name}"

    if result.type != XPathResultType.NODESET:
        raise QueryResultTypeError(
            f"Group query {where} returned {result.type.value}, expected nodeset"
        )
    if len(result.nodes) > 1:
        raise GroupCardinalityError(
            f"Group query {where} returned {len(result.nodes)} nodes for root {root_index}"
        )
    if not result.nodes:
        return VOID

    node = result.nodes[0]
    if not document.contains(root, node):
        raise GroupCardinalityError(
            f"Group query {where} returned a node outside root {root_index}"
        )

    raw = xpath_result_values(document, result)[0]
    return query.pipeline.run(raw)


def resolve_group(document: Document, group: CompiledGroup) -> ResolvedGroup:
    """
    Resolve all member queries of a group against one document.

    Raises:
        QueryResultTypeError: If the root query or a member query does not
            return a nodeset, or a root is not an element.
        GroupCardinalityError: If a member query returns more than one node
            for a root, or a node outside its root.
        QueryEvaluationError: If the XPath engine rejects a query.
    """
    root_result = document.evaluate(group.root_query)
    if root_result.type != XPathResultType.NODESET:
        raise QueryResultTypeError(
            f"Root query of group {group.name} returned "
            f"{root_result.type.value}, expected nodeset"
        )

    roots = root_result.nodes
    for i, root in enumerate(roots):
        if not document.is_context_node(root):
            raise QueryResultTypeError(
                f"Root query of group {group.name} returned a non-element node at {i}"
            )

    resolved = ResolvedGroup(name=group.name, root_count=len(roots))

    for query in group.queries:
        resolved.results.append([
            _resolve_member(document, group, query, i, root)
            for i, root in enumerate(roots)
        ])

    logger.debug(
        "group_resolved",
        group=group.name,
        roots=len(roots),
        queries=len(group.queries),
        url=document.url,
    )
    return resolved
