"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any

import pytest

from xpaf.document import XPathResult
from xpaf.models import XpafParserDef
from xpaf.schema.compiler import compile_parser_def


class FakeNode:
    """A DOM node stand-in with a text value and a parent."""

    def __init__(
        self,
        text: str = "",
        parent: FakeNode | None = None,
        is_url: bool = False,
        is_element: bool = True,
    ):
        self.text = text
        self.parent = parent
        self.is_url = is_url
        self.is_element = is_element

    def __repr__(self) -> str:
        return f"FakeNode({self.text!r})"


class FakeDocument:
    """
    Document whose query results are given up front.

    Results are keyed by query string, or by (query, context node) for
    queries evaluated relative to a node. Lists become nodesets; other
    values become scalar results. Unknown queries return an empty nodeset.
    """

    def __init__(self, results: dict[Any, Any] | None = None, url: str = "https://example.com/page"):
        self.url = url
        self.results = results or {}
        self.calls: list[tuple[str, Any]] = []

    def evaluate(self, query: str, context: Any | None = None) -> XPathResult:
        self.calls.append((query, context))
        key = query if context is None else (query, context)
        value = self.results.get(key, [])
        if isinstance(value, Exception):
            raise value
        if isinstance(value, XPathResult):
            return value
        if isinstance(value, list):
            return XPathResult.nodeset(value)
        return XPathResult.scalar(value)

    def node_text(self, node: FakeNode) -> str:
        return node.text

    def is_url_node(self, node: FakeNode) -> bool:
        return node.is_url

    def is_context_node(self, node: FakeNode) -> bool:
        return node.is_element

    def contains(self, root: FakeNode, node: FakeNode) -> bool:
        current = node
        while current is not None:
            if current is root:
                return True
            current = current.parent
        return False


def nodes(*texts: str, parent: FakeNode | None = None) -> list[FakeNode]:
    """Build a nodeset of FakeNodes."""
    return [FakeNode(text, parent=parent) for text in texts]


def compile_parser(**fields):
    """Compile a parser definition given as keyword fields."""
    fields.setdefault("parser_name", "test_parser")
    return compile_parser_def(XpafParserDef.model_validate(fields))


def template(subject: str, obj: str, cs: str = "ONE", co: str = "ONE", **fields) -> dict:
    """Relation template dict with a default predicate."""
    return {
        "subject": subject,
        "predicate": fields.pop("predicate", "related_to"),
        "object": obj,
        "subject_cardinality": cs,
        "object_cardinality": co,
        **fields,
    }


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_html():
    """A product listing page with sibling items of uneven shape."""
    return """
    <html>
      <head><title>Shop</title></head>
      <body>
        <h1> Example   Shop </h1>
        <p class="count">Count: 1,000</p>
        <div class="item"><b>foo_1</b></div>
        <div class="item"><b>foo_2</b><img src="/img/bar_a.png"></div>
        <div class="item"><img src="/img/bar_b.png"></div>
        <a href="/about">About</a>
        <a href="https://other.com/">Other</a>
      </body>
    </html>
    """


@pytest.fixture
def sample_schema():
    """Parser definitions matching sample_html."""
    return {
        "parser_defs": [
            {
                "parser_name": "shop",
                "url_regexp": r"^https://shop\.example\.com/",
                "query_defs": [
                    {"name": "title", "query": "//h1"},
                    {
                        "name": "count",
                        "query": "//p[@class='count']",
                        "post_processing_ops": [
                            {"extract_op": {"regexp": r"Count: ([\d,]+)"}},
                            {"replace_op": {"regexp": ",", "rewrite": ""}},
                        ],
                    },
                    {"name": "links", "query": "//a/@href"},
                ],
                "query_group_defs": [
                    {
                        "name": "item",
                        "root_query": "//div[@class='item']",
                        "query_defs": [
                            {"name": "name", "query": "/b"},
                            {"name": "img", "query": "/img/@src"},
                        ],
                    }
                ],
                "relation_tmpls": [
                    {
                        "subject": "%title%",
                        "predicate": "links_to",
                        "object": "%links%",
                        "subject_cardinality": "ONE",
                        "object_cardinality": "MANY",
                        "annotation_tmpls": [
                            {"name": "count", "value": "%count%", "value_cardinality": "ONE"}
                        ],
                        "userdata": "edge",
                    },
                    {
                        "subject": "%item.name%",
                        "predicate": "has_image",
                        "object": "%item.img%",
                        "subject_cardinality": "MANY",
                        "object_cardinality": "MANY",
                    },
                ],
            },
            {
                "parser_name": "generic",
                "relation_tmpls": [
                    {
                        "subject": "/html/head/title",
                        "predicate": "is_page",
                        "object": "true",
                        "subject_cardinality": "ONE",
                        "object_cardinality": "ONE",
                    }
                ],
            },
        ]
    }
