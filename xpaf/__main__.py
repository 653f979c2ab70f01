"""
XPAF CLI - Command Line Interface

Usage:
    python -m xpaf validate parsers.json
    python -m xpaf parse page.html --url https://example.com/page --schema parsers.json
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import structlog

from xpaf.config import configure_logging, get_settings

logger = structlog.get_logger(__name__)


def _schema_path(args) -> Path:
    if args.schema:
        return Path(args.schema)

    settings = get_settings()
    if settings.schema_path is None:
        print("Error: No schema given (use --schema or set XPAF_SCHEMA_PATH)")
        sys.exit(1)
    return settings.schema_path


def cmd_validate(args):
    """Load, validate and compile parser definitions."""
    from xpaf.exceptions import SchemaError
    from xpaf.parser import XpafParserMaster

    try:
        master = XpafParserMaster.from_file(args.schema)
    except SchemaError as e:
        print(f"Schema error: {e}")
        sys.exit(1)

    print(f"✓ Schema valid: {args.schema}")
    for parser in master.parsers:
        compiled = parser.compiled
        pattern = compiled.url_pattern.pattern if compiled.url_pattern else "(any url)"
        print(
            f"  {parser.name}: {len(compiled.queries)} queries, "
            f"{len(compiled.groups)} groups, {len(compiled.templates)} templates, "
            f"url {pattern}"
        )

    return master


def cmd_parse(args):
    """Parse an HTML file and print the extracted relations as JSON."""
    from xpaf.exceptions import XpafError
    from xpaf.parser import XpafParserMaster

    html_path = Path(args.file)
    if not html_path.exists():
        print(f"Error: File not found: {html_path}")
        sys.exit(1)

    try:
        master = XpafParserMaster.from_file(_schema_path(args))
        parsed = master.parse_html(args.url, html_path.read_bytes())
    except XpafError as e:
        print(f"Error: {e}")
        sys.exit(1)

    output = parsed.model_dump_json(indent=2, exclude_none=True)
    if args.output:
        output_path = Path(args.output)
        output_path.write_text(output, encoding="utf-8")
        print(f"{len(parsed.relations)} relations saved to: {output_path}")
    else:
        print(output)

    return parsed


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        description="XPAF - declarative XPath relation extraction"
    )
    parser.add_argument("--log-level", help="Log level (default from XPAF_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate parser definitions")
    validate_parser.add_argument("schema", help="Path to parser definitions JSON")

    # Parse command
    parse_parser = subparsers.add_parser("parse", help="Extract relations from an HTML file")
    parse_parser.add_argument("file", help="Path to HTML file")
    parse_parser.add_argument("--url", required=True, help="Source url of the document")
    parse_parser.add_argument("--schema", "-s", help="Path to parser definitions JSON")
    parse_parser.add_argument("-o", "--output", help="Output JSON file for relations")

    args = parser.parse_args(argv)

    configure_logging(args.log_level or get_settings().log_level)

    if args.command == "validate":
        cmd_validate(args)
    elif args.command == "parse":
        cmd_parse(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
