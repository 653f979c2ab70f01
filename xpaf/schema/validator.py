"""
Schema Validator

Load-time checks on parser definitions. Every problem found here is a
SchemaError, reported before any document is processed:

- names must match [A-Za-z_]+
- names must be unique within their scope
- url_regexps and post-processing regexps must compile
- XPath queries must compile
- predicates must not be references
"""

from __future__ import annotations

import re
from typing import Iterable

import structlog

from xpaf.document import check_xpath
from xpaf.evaluation.post_processing import compile_regexp
from xpaf.exceptions import (
    DuplicateNameError,
    InvalidNameError,
    InvalidPredicateError,
    InvalidQueryError,
)
from xpaf.models import QueryDef, QueryGroupDef, RelationTemplate, XpafParserDef, XpafParserDefs

logger = structlog.get_logger(__name__)

NAME_PATTERN = re.compile(r"[A-Za-z_]+")

# Anything wrapped in percent signs is treated as a reference
REFERENCE_PATTERN = re.compile(r"%(.*)%", re.DOTALL)


def is_reference(value: str) -> bool:
    return REFERENCE_PATTERN.fullmatch(value) is not None


def is_inline_query(value: str) -> bool:
    return value.startswith("/")


def check_name(name: str, where: str) -> None:
    if NAME_PATTERN.fullmatch(name) is None:
        raise InvalidNameError(f"{where}: invalid name {name!r}, must match [A-Za-z_]+")


def check_unique(names: Iterable[str], where: str) -> None:
    seen: set[str] = set()
    for name in names:
        if name in seen:
            raise DuplicateNameError(f"{where}: duplicate name {name!r}")
        seen.add(name)


def _check_query_def(query_def: QueryDef, where: str, relative: bool = False) -> None:
    check_name(query_def.name, where)
    query = "." + query_def.query if relative else query_def.query
    try:
        check_xpath(query)
    except InvalidQueryError as e:
        raise InvalidQueryError(f"{where}: {e}") from e
    for i, op in enumerate(query_def.post_processing_ops):
        regexp = op.extract_op.regexp if op.extract_op is not None else op.replace_op.regexp
        compile_regexp(regexp, f"{where}.post_processing_ops[{i}]")


def _check_group_def(group_def: QueryGroupDef, where: str) -> None:
    check_name(group_def.name, where)
    try:
        check_xpath(group_def.root_query)
    except InvalidQueryError as e:
        raise InvalidQueryError(f"{where}: {e}") from e

    check_unique((q.name for q in group_def.query_defs), where)
    for query_def in group_def.query_defs:
        _check_query_def(query_def, f"{where}.{query_def.name}", relative=True)


def _check_template(template: RelationTemplate, where: str) -> None:
    if is_reference(template.predicate):
        raise InvalidPredicateError(
            f"{where}: predicate {template.predicate!r} must be a literal"
        )
    if template.url_regexp is not None:
        compile_regexp(template.url_regexp, f"{where}.url_regexp")


def validate_parser_def(parser_def: XpafParserDef) -> None:
    """
    Validate one parser definition.

    References are checked separately, when the parser is compiled.

    Raises:
        SchemaError: On the first problem found.
    """
    where = f"parser {parser_def.parser_name!r}"

    if not parser_def.parser_name:
        raise InvalidNameError("parser_name must not be empty")
    if parser_def.url_regexp is not None:
        compile_regexp(parser_def.url_regexp, f"{where}.url_regexp")

    check_unique((q.name for q in parser_def.query_defs), f"{where}.query_defs")
    for query_def in parser_def.query_defs:
        _check_query_def(query_def, f"{where}.query_defs.{query_def.name}")

    check_unique((g.name for g in parser_def.query_group_defs), f"{where}.query_group_defs")
    for group_def in parser_def.query_group_defs:
        _check_group_def(group_def, f"{where}.query_group_defs.{group_def.name}")

    for i, template in enumerate(parser_def.relation_tmpls):
        _check_template(template, f"{where}.relation_tmpls[{i}]")


def validate_parser_defs(parser_defs: XpafParserDefs) -> None:
    """Validate every parser definition. Parser names must be unique."""
    check_unique((p.parser_name for p in parser_defs.parser_defs), "parser_defs")
    for parser_def in parser_defs.parser_defs:
        validate_parser_def(parser_def)

    logger.debug("parser_defs_validated", parsers=len(parser_defs.parser_defs))
