"""
XPAF Parsers - Parser Selection and Document Parsing

XpafParser wraps one compiled parser definition:
    should_parse(url)   True if the parser applies to the url
    parse(document)     All relations of all templates, in template order

XpafParserMaster holds every parser of a schema and runs the applicable ones
against a document, concatenating their relations in declaration order.

Usage:
    master = XpafParserMaster.from_file("parsers.json")
    parsed = master.parse_html("https://example.com/page", html)
    for relation in parsed.relations:
        print(relation.subject, relation.predicate, relation.object)
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable

import structlog

from xpaf.config import DEFAULT_MAX_WORKERS
from xpaf.document import Document, HtmlDocument
from xpaf.evaluation.query_evaluator import QueryEvaluator
from xpaf.evaluation.relation_evaluator import RelationTemplateEvaluator
from xpaf.exceptions import XpafError
from xpaf.models import ParsedDocument, Relation, XpafParserDef, XpafParserDefs
from xpaf.schema.compiler import compile_parser_def, compile_parser_defs
from xpaf.schema.loader import load_parser_defs
from xpaf.schema.references import CompiledParser

logger = structlog.get_logger(__name__)


class XpafParser:
    """
    A single compiled parser.

    Immutable and safe to share between threads; all per-document state
    lives in the evaluators created by parse().
    """

    def __init__(self, compiled: CompiledParser):
        self.compiled = compiled

    @classmethod
    def from_def(cls, parser_def: XpafParserDef) -> XpafParser:
        """Validate and compile a parser definition."""
        return cls(compile_parser_def(parser_def))

    @property
    def name(self) -> str:
        return self.compiled.name

    def should_parse(self, url: str) -> bool:
        """True if the parser has no url_regexp or it partially matches url."""
        pattern = self.compiled.url_pattern
        return pattern is None or pattern.search(url) is not None

    def parse(self, document: Document) -> list[Relation]:
        """
        Run every relation template against the document.

        Does not check url_regexp; use should_parse() for selection.
        """
        evaluator = RelationTemplateEvaluator(QueryEvaluator(document, self.compiled))

        relations: list[Relation] = []
        for template in self.compiled.templates:
            relations.extend(evaluator.evaluate(template))

        logger.debug(
            "parser_finished",
            parser=self.name,
            url=document.url,
            relations=len(relations),
        )
        return relations

    def __repr__(self) -> str:
        return f"XpafParser({self.name!r})"


class XpafParserMaster:
    """All parsers of a schema, in declaration order."""

    def __init__(self, parsers: Iterable[XpafParser]):
        self.parsers: tuple[XpafParser, ...] = tuple(parsers)

    @classmethod
    def from_defs(cls, parser_defs: XpafParserDefs) -> XpafParserMaster:
        """
        Validate and compile parser definitions.

        Raises:
            SchemaError: If any definition is invalid.
        """
        master = cls(XpafParser(compiled) for compiled in compile_parser_defs(parser_defs))
        logger.info("parser_master_ready", parsers=[p.name for p in master.parsers])
        return master

    @classmethod
    def from_file(cls, path: str | Path) -> XpafParserMaster:
        """Load, validate and compile parser definitions from a JSON file."""
        return cls.from_defs(load_parser_defs(path))

    def applicable_parsers(self, url: str) -> list[XpafParser]:
        return [p for p in self.parsers if p.should_parse(url)]

    def parse(self, document: Document) -> ParsedDocument:
        """Run every applicable parser against the document."""
        parsed = ParsedDocument(url=document.url)

        for parser in self.applicable_parsers(document.url):
            parsed.relations.extend(parser.parse(document))
            parsed.parser_names.append(parser.name)

        logger.info(
            "document_parsed",
            url=document.url,
            parsers=parsed.parser_names,
            relations=len(parsed.relations),
        )
        return parsed

    def parse_html(self, url: str, html: str | bytes) -> ParsedDocument:
        """
        Parse raw HTML, then run the applicable parsers.

        Raises:
            DocumentParseError: If the HTML cannot be parsed.
        """
        if not self.applicable_parsers(url):
            logger.debug("no_applicable_parsers", url=url)
            return ParsedDocument(url=url)
        return self.parse(HtmlDocument.from_string(html, url))

    def parse_many(
        self,
        pages: Iterable[tuple[str, str | bytes]],
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> list[ParsedDocument]:
        """
        Parse several (url, html) pages in parallel.

        Results keep the input order. A page that fails to parse yields an
        empty ParsedDocument and the failure is logged.
        """
        pages = list(pages)

        def _parse_page(page: tuple[str, str | bytes]) -> ParsedDocument:
            url, html = page
            try:
                return self.parse_html(url, html)
            except XpafError as e:
                logger.warning("page_failed", url=url, error=str(e))
                return ParsedDocument(url=url)
            except Exception as e:
                logger.error("page_failed", url=url, error=str(e), exc_info=True)
                return ParsedDocument(url=url)

        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(pool.map(_parse_page, pages))

        logger.info(
            "pages_parsed",
            pages=len(pages),
            relations=sum(len(r.relations) for r in results),
        )
        return results
