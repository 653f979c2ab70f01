"""
Query Evaluator

Resolves typed value references against one document:

- LiteralRef      -> [Present(literal)]
- NamedQueryRef   -> the parser-level query, post-processed
- GroupQueryRef   -> the member query's root-aligned sequence
- InlineQuery     -> the inline XPath, no post-processing

A QueryEvaluator is created per (document, parser) and discarded afterwards.
Each query and group is evaluated at most once per document, however many
templates reference it. Failures are remembered as well, so a broken group
is reported once and every later reference fails the same way.
"""

from __future__ import annotations

import structlog

from xpaf.document import Document
from xpaf.evaluation.group_resolver import ResolvedGroup, resolve_group
from xpaf.evaluation.results import Present, ResultValue, xpath_result_values
from xpaf.exceptions import EvaluationError
from xpaf.schema.references import (
    CompiledParser,
    CompiledQuery,
    GroupQueryRef,
    InlineQuery,
    LiteralRef,
    NamedQueryRef,
    ValueRef,
)

logger = structlog.get_logger(__name__)


def evaluate_query(document: Document, query: CompiledQuery) -> list[ResultValue]:
    """Evaluate a parser-level query and post-process each result."""
    result = document.evaluate(query.query)
    return query.pipeline.run_all(xpath_result_values(document, result))


class QueryEvaluator:
    """
    Per-document resolution of value references for one parser.

    Attributes:
        document: The document being parsed.
        parser: The compiled parser whose references are resolved.
    """

    def __init__(self, document: Document, parser: CompiledParser):
        self.document = document
        self.parser = parser
        self._queries: dict[int, list[ResultValue] | EvaluationError] = {}
        self._groups: dict[int, ResolvedGroup | EvaluationError] = {}

    def resolve(self, ref: ValueRef) -> list[ResultValue]:
        """
        Resolve a reference to an ordered sequence of results.

        Raises:
            EvaluationError: If the underlying query or group cannot be
                evaluated for this document.
        """
        if isinstance(ref, LiteralRef):
            return [Present(ref.value)]

        if isinstance(ref, InlineQuery):
            result = self.document.evaluate(ref.query)
            return xpath_result_values(self.document, result)

        if isinstance(ref, NamedQueryRef):
            return list(self._named_query(ref.index))

        if isinstance(ref, GroupQueryRef):
            return list(self._group(ref.group_index).get(ref.query_index))

        raise TypeError(f"Unknown reference type: {type(ref).__name__}")

    def _named_query(self, index: int) -> list[ResultValue]:
        if index not in self._queries:
            query = self.parser.queries[index]
            try:
                self._queries[index] = evaluate_query(self.document, query)
            except EvaluationError as e:
                logger.warning(
                    "query_failed",
                    parser=self.parser.name,
                    query=query.name,
                    url=self.document.url,
                    error=str(e),
                )
                self._queries[index] = e

        cached = self._queries[index]
        if isinstance(cached, EvaluationError):
            raise cached
        return cached

    def _group(self, index: int) -> ResolvedGroup:
        if index not in self._groups:
            group = self.parser.groups[index]
            try:
                self._groups[index] = resolve_group(self.document, group)
            except EvaluationError as e:
                logger.warning(
                    "query_group_failed",
                    parser=self.parser.name,
                    group=group.name,
                    url=self.document.url,
                    error=str(e),
                )
                self._groups[index] = e

        cached = self._groups[index]
        if isinstance(cached, EvaluationError):
            raise cached
        return cached
