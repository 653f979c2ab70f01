"""
Document - XPath Evaluation over Parsed HTML

The evaluation engine never touches a DOM directly. It talks to a
``Document``: something that knows its URL, can evaluate an XPath query
(optionally relative to a context node) and can describe the nodes it returns.

``HtmlDocument`` is the lxml-backed implementation used in production.

Usage:
    doc = HtmlDocument.from_string(html, url="https://example.com/page")
    result = doc.evaluate("//a/@href")
    if result.type == XPathResultType.NODESET:
        values = [doc.node_text(node) for node in result.nodes]
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import lxml.html
import structlog
from lxml import etree

from xpaf.exceptions import (
    DocumentParseError,
    InvalidQueryError,
    QueryEvaluationError,
    QueryResultTypeError,
)

logger = structlog.get_logger(__name__)

# Attribute nodes holding urls; their values are absolutized
URL_ATTRIBUTES = frozenset({"href", "src"})


class XPathResultType(str, Enum):
    """The four XPath 1.0 result types."""

    NODESET = "nodeset"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class XPathResult:
    """Typed result of one XPath evaluation."""

    type: XPathResultType
    nodes: tuple[Any, ...] = ()
    value: str | float | bool | None = None

    @classmethod
    def nodeset(cls, nodes) -> XPathResult:
        return cls(type=XPathResultType.NODESET, nodes=tuple(nodes))

    @classmethod
    def scalar(cls, value: str | float | bool) -> XPathResult:
        if isinstance(value, bool):
            return cls(type=XPathResultType.BOOLEAN, value=value)
        if isinstance(value, (int, float)):
            return cls(type=XPathResultType.NUMBER, value=float(value))
        return cls(type=XPathResultType.STRING, value=str(value))


class Document(Protocol):
    """What the evaluation engine needs from a parsed document."""

    url: str

    def evaluate(self, query: str, context: Any | None = None) -> XPathResult:
        """Evaluate query against the document, or relative to context."""
        ...

    def node_text(self, node: Any) -> str:
        """String value of a node returned in a nodeset."""
        ...

    def is_url_node(self, node: Any) -> bool:
        """True if the node holds a url that should be absolutized."""
        ...

    def is_context_node(self, node: Any) -> bool:
        """True if queries can be evaluated relative to node."""
        ...

    def contains(self, root: Any, node: Any) -> bool:
        """True if node is root or a descendant of root."""
        ...


def check_xpath(query: str) -> None:
    """
    Check that a query compiles.

    Raises:
        InvalidQueryError: If lxml rejects the query.
    """
    try:
        etree.XPath(query)
    except etree.XPathError as e:
        raise InvalidQueryError(f"Invalid XPath {query!r}: {e}") from e


class HtmlDocument:
    """
    Document backed by an lxml HTML tree.

    Attributes:
        url: Source url of the document.
        tree: The parsed lxml ElementTree.
    """

    def __init__(self, tree: etree._ElementTree, url: str):
        self.tree = tree
        self.url = url

    @classmethod
    def from_string(cls, html: str | bytes, url: str) -> HtmlDocument:
        """
        Parse an HTML string.

        Raises:
            DocumentParseError: If lxml cannot build a tree from the input.
        """
        try:
            root = lxml.html.document_fromstring(html)
        except (etree.ParserError, ValueError) as e:
            raise DocumentParseError(f"Cannot parse document {url}: {e}") from e

        logger.debug("document_parsed", url=url)
        return cls(root.getroottree(), url)

    def evaluate(self, query: str, context: Any | None = None) -> XPathResult:
        if context is not None and not self.is_context_node(context):
            raise QueryResultTypeError(
                f"XPath {query!r} needs an element context, got {type(context).__name__}"
            )
        target = self.tree if context is None else context
        try:
            raw = target.xpath(query)
        except etree.XPathError as e:
            raise QueryEvaluationError(f"XPath {query!r} failed on {self.url}: {e}") from e

        if isinstance(raw, list):
            return XPathResult.nodeset(raw)
        return XPathResult.scalar(raw)

    def node_text(self, node: Any) -> str:
        if isinstance(node, etree._Element):
            text = etree.tostring(node, method="text", encoding="unicode", with_tail=False)
            return " ".join(text.split())
        if isinstance(node, tuple):
            # Namespace nodes come back as (prefix, uri)
            return str(node[1])
        return str(node)

    def is_context_node(self, node: Any) -> bool:
        return isinstance(node, etree._Element)

    def is_url_node(self, node: Any) -> bool:
        return bool(getattr(node, "is_attribute", False)) and node.attrname in URL_ATTRIBUTES

    def contains(self, root: Any, node: Any) -> bool:
        if isinstance(node, etree._Element):
            return node is root or any(a is root for a in node.iterancestors())

        getparent = getattr(node, "getparent", None)
        parent = getparent() if getparent is not None else None
        if parent is None:
            return False
        if getattr(node, "is_tail", False):
            # Tail text sits after its element, inside the element's parent
            return parent is not root and self.contains(root, parent)
        return self.contains(root, parent)
