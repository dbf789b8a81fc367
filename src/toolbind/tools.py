"""
Tool helpers: lookup with near-miss suggestions, MCP-style names and payload checks.

Tool names on the wire follow ``mcp_<server>_<tool>``. Payload checks
cover primitive type compatibility and required-field presence only.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Final

from toolbind.canonical import CanonicalType, canonical_from_schema
from toolbind.models import InputSchema, ToolSchema

MCP_TOOL_NAME_PATTERN: Final = re.compile(r"^mcp_([^_]+)_(.+)$")
MCP_PREFIX_PATTERN: Final = re.compile(r"^mcp_[^_]+_")

INVALID_FORMAT_SUGGESTIONS: Final = 3
UNKNOWN_TOOL_SUGGESTIONS: Final = 5


@dataclass(frozen=True)
class ParsedToolName:
    """Components of an MCP-style tool name."""

    full_name: str
    server_name: str | None
    tool_name: str | None

    @property
    def is_valid_format(self) -> bool:
        return self.server_name is not None


@dataclass
class PayloadValidation:
    """Result of checking a tool call payload against its schema."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


class ToolValidationStatus(StrEnum):
    """Outcome of looking a tool name up among the available tools."""

    NO_SERVERS = "no-servers"
    INVALID = "invalid"
    VALID = "valid"
    UNKNOWN = "unknown"


@dataclass
class ToolValidationResult:
    """Result of validate_tool_exists()."""

    status: ToolValidationStatus
    message: str
    suggestions: list[str] = field(default_factory=list)
    tool: ToolSchema | None = None

    @property
    def is_valid(self) -> bool:
        return self.status == ToolValidationStatus.VALID


def find_tool(tools: Iterable[ToolSchema], tool_name: str, server_name: str) -> ToolSchema | None:
    """Find a tool by name and server."""
    for tool in tools:
        if tool.name == tool_name and tool.server_name == server_name:
            return tool
    return None


def parse_tool_name(name: str) -> ParsedToolName:
    trimmed = name.strip()
    match = MCP_TOOL_NAME_PATTERN.match(trimmed)
    if match:
        return ParsedToolName(full_name=trimmed, server_name=match.group(1), tool_name=match.group(2))
    return ParsedToolName(full_name=trimmed, server_name=None, tool_name=None)


def format_tool_name(server_name: str, tool_name: str) -> str:
    """Build ``mcp_<server>_<tool>``, replacing any existing mcp prefix."""
    return f"mcp_{server_name}_{MCP_PREFIX_PATTERN.sub('', tool_name)}"


def qualified_tool_name(tool: ToolSchema) -> str:
    """MCP-style name of a tool; tools without a server keep their bare name."""
    if not tool.server_name:
        return tool.name
    return format_tool_name(tool.server_name, tool.name)


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance between two strings (insertions, deletions, substitutions)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            current.append(
                min(
                    previous[j - 1] + (char_a != char_b),
                    previous[j] + 1,
                    current[j - 1] + 1,
                )
            )
        previous = current
    return previous[-1]


def rank_similar_tools(name: str, tools: Iterable[ToolSchema], limit: int) -> list[ToolSchema]:
    """
    Rank tools by how closely their qualified name matches ``name``.

    Args:
        name: Tool name as typed by the user
        tools: Available tools
        limit: Maximum number of tools returned

    Returns:
        Closest tools first; ties keep their input order
    """
    needle = name.lower()
    scored = sorted(
        tools,
        key=lambda tool: levenshtein_distance(needle, qualified_tool_name(tool).lower()),
    )
    return scored[:limit]


def get_similar_tool_names(name: str, tools: Iterable[ToolSchema], limit: int) -> list[str]:
    return [qualified_tool_name(tool) for tool in rank_similar_tools(name, tools, limit)]


def validate_tool_exists(tool_name: str, tools: Sequence[ToolSchema]) -> ToolValidationResult:
    """
    Check an MCP-style tool name against the available tools.

    Args:
        tool_name: Name in ``mcp_<server>_<tool>`` form
        tools: Tools exposed by the connected servers

    Returns:
        ToolValidationResult; invalid and unknown names carry the closest
        available names as suggestions
    """
    if not tools:
        return ToolValidationResult(
            status=ToolValidationStatus.NO_SERVERS,
            message="No MCP servers connected; no tools are available",
        )

    if not parse_tool_name(tool_name).is_valid_format:
        return ToolValidationResult(
            status=ToolValidationStatus.INVALID,
            message="Invalid tool name format. Expected: mcp_servername_toolname",
            suggestions=get_similar_tool_names(tool_name, tools, INVALID_FORMAT_SUGGESTIONS),
        )

    trimmed = tool_name.strip()
    for tool in tools:
        if qualified_tool_name(tool) == trimmed:
            return ToolValidationResult(
                status=ToolValidationStatus.VALID,
                message=f"Valid tool from server: {tool.server_name}",
                tool=tool,
            )

    return ToolValidationResult(
        status=ToolValidationStatus.UNKNOWN,
        message="Tool not found in connected servers. Check server connection or tool name.",
        suggestions=get_similar_tool_names(tool_name, tools, UNKNOWN_TOOL_SUGGESTIONS),
    )


def _value_type(value: Any) -> CanonicalType:
    # bool is an int subclass; check it first
    if value is None:
        return CanonicalType.NULL
    if isinstance(value, bool):
        return CanonicalType.BOOLEAN
    if isinstance(value, (int, float)):
        return CanonicalType.NUMBER
    if isinstance(value, str):
        return CanonicalType.STRING
    if isinstance(value, (list, tuple)):
        return CanonicalType.ARRAY
    if isinstance(value, Mapping):
        return CanonicalType.OBJECT
    return CanonicalType.ANY


def validate_tool_payload(payload: Any, schema: InputSchema | None) -> PayloadValidation:
    """
    Check a tool call payload against a tool's input schema.

    Args:
        payload: The arguments object a UI would send
        schema: Input schema of the tool, None if unknown

    Returns:
        PayloadValidation with errors and warnings
    """
    result = PayloadValidation()

    if not isinstance(payload, Mapping):
        result.errors.append("Payload must be an object (not a string, array or null)")
        return result

    if schema is None:
        result.warnings.append("No schema available for validation")
        return result

    for name in schema.required:
        if name not in payload:
            result.errors.append(f"Missing required parameter: {name}")

    if schema.properties is None:
        return result

    for name, value in payload.items():
        prop = schema.properties.get(name)
        if prop is None:
            if schema.additional_properties is False:
                result.warnings.append(f"Unexpected parameter: {name}")
            continue

        # null is accepted for any declared parameter
        if value is None:
            continue

        expected = canonical_from_schema(prop.type)
        actual = _value_type(value)
        if expected == CanonicalType.ANY or actual == CanonicalType.ANY:
            continue
        if prop.type == "integer" and isinstance(value, float) and not value.is_integer():
            result.errors.append(f'Parameter "{name}" should be integer, got a fractional number')
        elif expected != actual:
            result.errors.append(f'Parameter "{name}" should be {expected}, got {actual}')

    return result
