"""
XPAF - XPath Annotation Framework

Declarative extraction of {subject, predicate, object} relations from web
documents. Sites are described by a schema of XPath queries and relation
templates instead of hand-written extraction code.

Key Features:
- Named queries, query groups and inline XPath
- Post-processing operations (extract, replace) with per-value voiding
- Root-aligned query groups (no cross-contamination between siblings)
- ONE/MANY cardinality reconciliation for subjects, objects, annotations
- URL-gated parsers and relation templates
- Document-parallel parsing over an immutable compiled schema

Usage:
    from xpaf import XpafParserMaster

    master = XpafParserMaster.from_file("parsers.json")
    parsed = master.parse_html("https://example.com/page", html)
    for relation in parsed.relations:
        print(relation.subject, relation.predicate, relation.object)

    # Low-level API
    from xpaf import HtmlDocument, XpafParser, load_parser_defs

    defs = load_parser_defs("parsers.json")
    parser = XpafParser.from_def(defs.parser_defs[0])
    relations = parser.parse(HtmlDocument.from_string(html, url))
"""

__version__ = "0.1.0"

from xpaf.exceptions import EvaluationError, SchemaError, XpafError
from xpaf.models import (
    Annotation,
    AnnotationTemplate,
    Cardinality,
    ExtractOp,
    ParsedDocument,
    PostProcessingOp,
    QueryDef,
    QueryGroupDef,
    Relation,
    RelationTemplate,
    ReplaceOp,
    XpafParserDef,
    XpafParserDefs,
)
from xpaf.document import Document, HtmlDocument, XPathResult, XPathResultType
from xpaf.evaluation import VOID, Present, RelationTemplateEvaluator, QueryEvaluator
from xpaf.schema import compile_parser_defs, load_parser_defs, parse_parser_defs
from xpaf.parser import XpafParser, XpafParserMaster

__all__ = [
    # Version
    "__version__",
    # Parsers (main entry points)
    "XpafParser",
    "XpafParserMaster",
    # Schema
    "load_parser_defs",
    "parse_parser_defs",
    "compile_parser_defs",
    "XpafParserDefs",
    "XpafParserDef",
    "QueryDef",
    "QueryGroupDef",
    "RelationTemplate",
    "AnnotationTemplate",
    "PostProcessingOp",
    "ExtractOp",
    "ReplaceOp",
    "Cardinality",
    # Documents
    "Document",
    "HtmlDocument",
    "XPathResult",
    "XPathResultType",
    # Evaluation
    "QueryEvaluator",
    "RelationTemplateEvaluator",
    "Present",
    "VOID",
    # Output
    "Relation",
    "Annotation",
    "ParsedDocument",
    # Errors
    "XpafError",
    "SchemaError",
    "EvaluationError",
]
