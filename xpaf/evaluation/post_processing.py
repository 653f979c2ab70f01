"""
Post-Processing Pipeline

Applies an ordered list of operations to a single query result.

Each operation either transforms the value or voids it. Once a value is
void the pipeline stops: later operations are never invoked.

Example - extract "1000" from "Count: 1,000":
    pipeline = PostProcessingPipeline([
        ExtractOperation(re.compile(r"Count: ([\\d,]+)")),
        ReplaceOperation(re.compile(","), ""),
    ])
    pipeline.run(Present("Count: 1,000"))  # Present("1000")
"""

from __future__ import annotations

import re
from typing import Iterable, Protocol

import structlog

from xpaf.evaluation.results import VOID, Present, ResultValue, is_void
from xpaf.exceptions import InvalidRegexpError
from xpaf.models import PostProcessingOp

logger = structlog.get_logger(__name__)


class Operation(Protocol):
    """A pure function of (value, fixed parameters)."""

    def apply(self, value: str) -> ResultValue:
        ...


class ExtractOperation:
    """
    Extract the first match of a pattern.

    Uses partial-match semantics. If the pattern has capture groups the
    first group is extracted, otherwise the whole match. Voids the value if
    nothing matches or the first group did not participate in the match.
    """

    def __init__(self, pattern: re.Pattern):
        self.pattern = pattern

    def apply(self, value: str) -> ResultValue:
        match = self.pattern.search(value)
        if match is None:
            return VOID

        extracted = match.group(1) if self.pattern.groups else match.group(0)
        if extracted is None:
            return VOID
        return Present(extracted)

    def __repr__(self) -> str:
        return f"ExtractOperation({self.pattern.pattern!r})"


class ReplaceOperation:
    """Replace every match of a pattern. Never voids."""

    def __init__(self, pattern: re.Pattern, rewrite: str):
        self.pattern = pattern
        self.rewrite = rewrite

    def apply(self, value: str) -> ResultValue:
        return Present(self.pattern.sub(self.rewrite, value))

    def __repr__(self) -> str:
        return f"ReplaceOperation({self.pattern.pattern!r}, {self.rewrite!r})"


def compile_regexp(pattern: str, where: str) -> re.Pattern:
    """
    Compile a regular expression from the schema.

    Raises:
        InvalidRegexpError: If the pattern does not compile.
    """
    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidRegexpError(f"{where}: invalid regexp {pattern!r}: {e}") from e


def build_operation(op: PostProcessingOp, where: str = "post_processing_op") -> Operation:
    """Build an operation from its schema definition."""
    if op.extract_op is not None:
        return ExtractOperation(compile_regexp(op.extract_op.regexp, where))

    pattern = compile_regexp(op.replace_op.regexp, where)
    try:
        # Surface bad back references at load time rather than per value
        pattern.sub(op.replace_op.rewrite, "")
    except (re.error, IndexError) as e:
        raise InvalidRegexpError(
            f"{where}: invalid rewrite {op.replace_op.rewrite!r}: {e}"
        ) from e
    return ReplaceOperation(pattern, op.replace_op.rewrite)


class PostProcessingPipeline:
    """Ordered, immutable list of operations."""

    def __init__(self, operations: Iterable[Operation] = ()):
        self.operations: tuple[Operation, ...] = tuple(operations)

    def run(self, result: ResultValue) -> ResultValue:
        """Run all operations on one result, short-circuiting on void."""
        for operation in self.operations:
            if is_void(result):
                break
            result = operation.apply(result.value)
        return result

    def run_all(self, results: Iterable[ResultValue]) -> list[ResultValue]:
        """Run the pipeline on each result, preserving positions."""
        processed = [self.run(result) for result in results]

        if self.operations:
            voided = sum(1 for r in processed if is_void(r))
            if voided:
                logger.debug(
                    "post_processing_voided",
                    total=len(processed),
                    voided=voided,
                )
        return processed

    def __len__(self) -> int:
        return len(self.operations)
