"""
Schema Loader - Load Parser Definitions from JSON

Parser definitions are stored as JSON mirroring the model fields:

    {
        "parser_defs": [
            {
                "parser_name": "example",
                "url_regexp": "^https://example\\\\.com/",
                "query_defs": [{"name": "title", "query": "//h1"}],
                "relation_tmpls": [
                    {
                        "subject": "%title%",
                        "predicate": "is_title",
                        "object": "true",
                        "subject_cardinality": "ONE",
                        "object_cardinality": "ONE"
                    }
                ]
            }
        ]
    }

A file holding a single parser definition (an object with "parser_name")
is accepted as well.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from xpaf.exceptions import SchemaError
from xpaf.models import XpafParserDefs

logger = structlog.get_logger(__name__)


def parse_parser_defs(data: str | bytes | dict[str, Any]) -> XpafParserDefs:
    """
    Build parser definitions from JSON text or an already decoded dict.

    Raises:
        SchemaError: If the JSON is malformed or does not match the schema.
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise SchemaError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise SchemaError(f"Expected a JSON object, got {type(data).__name__}")

    if "parser_name" in data:
        data = {"parser_defs": [data]}

    try:
        return XpafParserDefs.model_validate(data)
    except ValidationError as e:
        raise SchemaError(f"Invalid parser definitions: {e}") from e


def load_parser_defs(path: str | Path) -> XpafParserDefs:
    """
    Load parser definitions from a JSON file.

    Raises:
        SchemaError: If the file is missing, unreadable or invalid.
    """
    schema_path = Path(path)
    if not schema_path.exists():
        raise SchemaError(f"Schema file not found: {schema_path}")

    with open(schema_path, encoding="utf-8") as f:
        text = f.read()

    parser_defs = parse_parser_defs(text)

    logger.info(
        "parser_defs_loaded",
        path=str(schema_path),
        parsers=len(parser_defs.parser_defs),
    )
    return parser_defs
