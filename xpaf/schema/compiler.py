"""
Schema Compiler

Validates parser definitions and resolves every template value into a typed
reference:

    "%name%"         -> NamedQueryRef
    "%group.name%"   -> GroupQueryRef
    "/some/xpath"    -> InlineQuery
    anything else    -> LiteralRef

Usage:
    defs = load_parser_defs("parsers.json")
    parsers = compile_parser_defs(defs)
"""

from __future__ import annotations

import re

import structlog

from xpaf.document import check_xpath
from xpaf.evaluation.post_processing import PostProcessingPipeline, build_operation, compile_regexp
from xpaf.exceptions import InvalidQueryError, UnresolvedReferenceError
from xpaf.models import AnnotationTemplate, QueryDef, RelationTemplate, XpafParserDef, XpafParserDefs
from xpaf.schema.references import (
    CompiledAnnotation,
    CompiledGroup,
    CompiledParser,
    CompiledQuery,
    CompiledTemplate,
    GroupQueryRef,
    InlineQuery,
    LiteralRef,
    NamedQueryRef,
    ValueRef,
)
from xpaf.schema.validator import check_unique, is_inline_query, is_reference, validate_parser_def

logger = structlog.get_logger(__name__)

NAMED_REF_PATTERN = re.compile(r"%([A-Za-z_]+)%")
GROUP_REF_PATTERN = re.compile(r"%([A-Za-z_]+)\.([A-Za-z_]+)%")


class ReferenceResolver:
    """Resolves template value strings against one parser's definitions."""

    def __init__(self, parser_def: XpafParserDef):
        self.parser_name = parser_def.parser_name
        self._queries = {q.name: i for i, q in enumerate(parser_def.query_defs)}
        self._groups = {
            g.name: (i, {q.name: j for j, q in enumerate(g.query_defs)})
            for i, g in enumerate(parser_def.query_group_defs)
        }

    def resolve(self, value: str, where: str) -> ValueRef:
        """
        Resolve one value string.

        Raises:
            UnresolvedReferenceError: If a reference names an undefined query.
            InvalidQueryError: If an inline query does not compile.
        """
        if is_inline_query(value):
            try:
                check_xpath(value)
            except InvalidQueryError as e:
                raise InvalidQueryError(f"{where}: {e}") from e
            return InlineQuery(query=value)

        if not is_reference(value):
            return LiteralRef(value=value)

        match = NAMED_REF_PATTERN.fullmatch(value)
        if match:
            name = match.group(1)
            if name not in self._queries:
                raise UnresolvedReferenceError(f"{where}: undefined query {value!r}")
            return NamedQueryRef(index=self._queries[name], name=name)

        match = GROUP_REF_PATTERN.fullmatch(value)
        if match:
            group_name, query_name = match.groups()
            if group_name not in self._groups:
                raise UnresolvedReferenceError(f"{where}: undefined query group {value!r}")
            group_index, group_queries = self._groups[group_name]
            if query_name not in group_queries:
                raise UnresolvedReferenceError(f"{where}: undefined group query {value!r}")
            return GroupQueryRef(
                group_index=group_index,
                query_index=group_queries[query_name],
                name=f"{group_name}.{query_name}",
            )

        raise UnresolvedReferenceError(f"{where}: malformed reference {value!r}")


def _compile_query(query_def: QueryDef, where: str) -> CompiledQuery:
    operations = [
        build_operation(op, f"{where}.post_processing_ops[{i}]")
        for i, op in enumerate(query_def.post_processing_ops)
    ]
    return CompiledQuery(
        name=query_def.name,
        query=query_def.query,
        pipeline=PostProcessingPipeline(operations),
    )


def _compile_annotation(
    annotation: AnnotationTemplate,
    resolver: ReferenceResolver,
    where: str,
) -> CompiledAnnotation:
    return CompiledAnnotation(
        name=annotation.name,
        value=resolver.resolve(annotation.value, f"{where}.{annotation.name}"),
        cardinality=annotation.value_cardinality,
    )


def _compile_template(
    index: int,
    template: RelationTemplate,
    resolver: ReferenceResolver,
    where: str,
) -> CompiledTemplate:
    url_pattern = None
    if template.url_regexp is not None:
        url_pattern = compile_regexp(template.url_regexp, f"{where}.url_regexp")

    return CompiledTemplate(
        index=index,
        subject=resolver.resolve(template.subject, f"{where}.subject"),
        predicate=template.predicate,
        object=resolver.resolve(template.object, f"{where}.object"),
        subject_cardinality=template.subject_cardinality,
        object_cardinality=template.object_cardinality,
        annotations=tuple(
            _compile_annotation(a, resolver, f"{where}.annotation_tmpls")
            for a in template.annotation_tmpls
        ),
        userdata=template.userdata,
        url_pattern=url_pattern,
    )


def compile_parser_def(parser_def: XpafParserDef) -> CompiledParser:
    """
    Validate and compile one parser definition.

    Raises:
        SchemaError: If the definition is invalid.
    """
    validate_parser_def(parser_def)

    where = f"parser {parser_def.parser_name!r}"
    resolver = ReferenceResolver(parser_def)

    url_pattern = None
    if parser_def.url_regexp is not None:
        url_pattern = compile_regexp(parser_def.url_regexp, f"{where}.url_regexp")

    queries = tuple(
        _compile_query(q, f"{where}.query_defs.{q.name}") for q in parser_def.query_defs
    )
    groups = tuple(
        CompiledGroup(
            name=g.name,
            root_query=g.root_query,
            queries=tuple(
                _compile_query(q, f"{where}.query_group_defs.{g.name}.{q.name}")
                for q in g.query_defs
            ),
        )
        for g in parser_def.query_group_defs
    )
    templates = tuple(
        _compile_template(i, t, resolver, f"{where}.relation_tmpls[{i}]")
        for i, t in enumerate(parser_def.relation_tmpls)
    )

    logger.debug(
        "parser_compiled",
        parser=parser_def.parser_name,
        queries=len(queries),
        groups=len(groups),
        templates=len(templates),
    )

    return CompiledParser(
        name=parser_def.parser_name,
        url_pattern=url_pattern,
        queries=queries,
        groups=groups,
        templates=templates,
        userdata=parser_def.userdata,
    )


def compile_parser_defs(parser_defs: XpafParserDefs) -> list[CompiledParser]:
    """Validate and compile all parser definitions, keeping declaration order."""
    check_unique((p.parser_name for p in parser_defs.parser_defs), "parser_defs")
    return [compile_parser_def(p) for p in parser_defs.parser_defs]
