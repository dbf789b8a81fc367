"""
Command-line interface for toolbind.

Extracts interactive elements and placeholders from an HTML file,
validates action mappings against tool schemas, and infers candidate
tools, printing JSON results.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

import structlog  # noqa: I001
from dotenv import load_dotenv
from pydantic import TypeAdapter, ValidationError

from toolbind.config import EngineConfig
from toolbind.errors import InputLoadError, ToolbindError
from toolbind.extractor import extract_template_placeholders, parse_interactive_elements
from toolbind.inference import ToolInferenceEngine
from toolbind.models import ActionMapping, ToolSchema
from toolbind.validation import ValidationEngine

_TOOLS_ADAPTER = TypeAdapter(list[ToolSchema])
_MAPPINGS_ADAPTER = TypeAdapter(list[ActionMapping])


def configure_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure structlog for CLI output."""
    import logging

    log_level = "DEBUG" if debug else "INFO" if verbose else "WARNING"

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level),
        stream=sys.stderr,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level)
        ),
        context_class=dict,
        # stdout carries the JSON results
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="toolbind",
        description="toolbind - Bind interactive HTML elements to backend tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  toolbind elements page.html
  toolbind placeholders page.html
  toolbind validate page.html --tools tools.json --mappings mappings.json
  toolbind analyze page.html --output inferred.json

Environment:
  TOOLBIND_DEBOUNCE_DELAY          Debounce quiet period in seconds
  TOOLBIND_MAX_TEXT_LENGTH         Maximum element label length
  TOOLBIND_INFERRED_SERVER_NAME    Server name for inferred tools
  TOOLBIND_EXTERNAL_HREF_PREFIXES  Comma-separated navigation href prefixes
""",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="toolbind 1.0.0",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    elements = subparsers.add_parser("elements", help="List interactive elements")
    elements.add_argument("html", help="Path to the HTML file")

    placeholders = subparsers.add_parser("placeholders", help="List {{placeholder}} names")
    placeholders.add_argument("html", help="Path to the HTML file")

    validate = subparsers.add_parser("validate", help="Validate action mappings")
    validate.add_argument("html", help="Path to the HTML file")
    validate.add_argument(
        "--tools",
        required=True,
        help="JSON file holding a list of tool schemas",
    )
    validate.add_argument(
        "--mappings",
        required=True,
        help="JSON file holding a list of action mappings",
    )
    validate.add_argument(
        "--placeholders",
        nargs="*",
        default=None,
        help="Declared placeholder names (default: those found in the HTML)",
    )

    analyze = subparsers.add_parser("analyze", help="Infer tools from HTML structure")
    analyze.add_argument("html", help="Path to the HTML file")

    for sub in (elements, placeholders, validate, analyze):
        sub.add_argument(
            "-o", "--output",
            default=None,
            help="Output file path (default: stdout)",
        )

    return parser


def read_text(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise InputLoadError(path, str(e)) from e


def load_records(path: str, adapter: TypeAdapter, key: str) -> list[Any]:
    """
    Load a list of records from a JSON file.

    Args:
        path: JSON file path
        adapter: Type adapter validating the list
        key: Key under which an object-shaped file holds the list

    Returns:
        Validated records

    Raises:
        InputLoadError: If the file is unreadable, not JSON, or invalid
    """
    try:
        data = json.loads(read_text(path))
    except json.JSONDecodeError as e:
        raise InputLoadError(path, f"invalid JSON: {e}") from e

    if isinstance(data, dict):
        data = data.get(key, [])
    try:
        return adapter.validate_python(data)
    except ValidationError as e:
        raise InputLoadError(path, f"{e.error_count()} invalid record field(s)") from e


def write_output(payload: Any, output: str | None) -> None:
    text = json.dumps(payload, indent=2)
    if output:
        output_path = Path(output)
        output_path.write_text(text + "\n", encoding="utf-8")
        structlog.get_logger(__name__).info("output_saved", path=str(output_path.absolute()))
    else:
        print(text)


def run(args: argparse.Namespace, config: EngineConfig | None = None) -> int:
    """
    Execute a CLI command.

    Args:
        args: Parsed command-line arguments
        config: Engine configuration (default: from environment)

    Returns:
        Exit code (0 for success, 1 for invalid mappings or bad input)
    """
    logger = structlog.get_logger(__name__)
    config = config or EngineConfig.from_env()

    try:
        html = read_text(args.html)

        if args.command == "elements":
            elements = parse_interactive_elements(html, config)
            write_output([e.to_wire() for e in elements], args.output)
            return 0

        if args.command == "placeholders":
            write_output(extract_template_placeholders(html), args.output)
            return 0

        if args.command == "analyze":
            result = ToolInferenceEngine(config).analyze(html)
            write_output(result.to_wire(), args.output)
            return 0

        tools = load_records(args.tools, _TOOLS_ADAPTER, "tools")
        mappings = load_records(args.mappings, _MAPPINGS_ADAPTER, "mappings")
        placeholders = (
            args.placeholders if args.placeholders is not None else extract_template_placeholders(html)
        )
        status = ValidationEngine(config).validate(mappings, html, tools, placeholders)
        write_output({**status.to_wire(), "isValid": status.is_valid}, args.output)
        logger.info(
            "validation_summary",
            summary=status.summary(),
            mappings=len(mappings),
            tools=len(tools),
        )
        return 0 if status.is_valid else 1

    except ToolbindError as e:
        logger.error("input_error", error=str(e))
        return 1


def main(argv: list[str] | None = None) -> None:
    """Main entry point for CLI."""
    load_dotenv()
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=args.verbose, debug=args.debug)

    try:
        config = EngineConfig.from_env()
    except ValidationError as e:
        structlog.get_logger(__name__).error("configuration_error", error=str(e))
        sys.exit(1)

    sys.exit(run(args, config))


if __name__ == "__main__":
    main()
