"""
Result Values

Every query result is either Present(value) or VOID. A void result still
occupies its position in a result sequence: operation failures never change
result cardinalities or offsets.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union
from urllib.parse import urljoin

from xpaf.document import Document, XPathResult, XPathResultType


@dataclass(frozen=True)
class Present:
    """A result that holds a value."""

    value: str


class Void:
    """The explicit "no value" result. Use the VOID singleton."""

    _instance: Void | None = None

    def __new__(cls) -> Void:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "VOID"

    def __bool__(self) -> bool:
        return False


VOID = Void()

ResultValue = Union[Present, Void]


def is_void(result: ResultValue) -> bool:
    return isinstance(result, Void)


def format_number(number: float) -> ResultValue:
    """Format an XPath number; integral values drop the fractional part."""
    if math.isnan(number):
        return VOID
    if math.isinf(number):
        return Present("Infinity" if number > 0 else "-Infinity")
    if number.is_integer():
        return Present(str(int(number)))
    return Present(repr(number))


def xpath_result_values(document: Document, result: XPathResult) -> list[ResultValue]:
    """
    Convert a raw XPath result into an ordered list of result values.

    Nodesets yield one value per node. Url attributes are absolutized against
    the document url. Scalars yield a single value.
    """
    if result.type == XPathResultType.NODESET:
        values: list[ResultValue] = []
        for node in result.nodes:
            text = document.node_text(node)
            if document.is_url_node(node):
                text = urljoin(document.url, text.strip())
            values.append(Present(text))
        return values

    if result.type == XPathResultType.BOOLEAN:
        return [Present("true" if result.value else "false")]

    if result.type == XPathResultType.NUMBER:
        return [format_number(float(result.value))]

    return [Present(str(result.value))]
