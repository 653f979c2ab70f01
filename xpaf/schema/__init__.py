"""
Schema Module - Parser Definition Loading, Validation and Compilation

Turns JSON parser definitions into immutable compiled parsers:

    load_parser_defs(path) -> XpafParserDefs      (structure)
    compile_parser_defs(defs) -> [CompiledParser] (validation + resolution)

All problems are reported as SchemaError subclasses before any document
is processed.
"""

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
from xpaf.schema.loader import load_parser_defs, parse_parser_defs
from xpaf.schema.validator import validate_parser_def, validate_parser_defs
from xpaf.schema.compiler import ReferenceResolver, compile_parser_def, compile_parser_defs

__all__ = [
    # Loading
    "load_parser_defs",
    "parse_parser_defs",
    # Validation and compilation
    "validate_parser_def",
    "validate_parser_defs",
    "compile_parser_def",
    "compile_parser_defs",
    "ReferenceResolver",
    # Compiled forms
    "CompiledAnnotation",
    "CompiledGroup",
    "CompiledParser",
    "CompiledQuery",
    "CompiledTemplate",
    # References
    "GroupQueryRef",
    "InlineQuery",
    "LiteralRef",
    "NamedQueryRef",
    "ValueRef",
]
