"""
Pydantic models for toolbind.

Defines detected elements, tool schemas, action mappings with their
parameter sources, validation results and tool inferences. Every model
accepts the camelCase wire names used by editor front ends as well as
the snake_case field names.
"""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from toolbind.canonical import CanonicalType


class WireModel(BaseModel):
    """Base model mapping snake_case fields to camelCase wire names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Dump to the camelCase JSON-compatible shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ElementType(StrEnum):
    """Kinds of interactive element."""

    BUTTON = "button"
    FORM = "form"
    LINK = "link"
    INPUT = "input"
    SELECT = "select"
    TEXTAREA = "textarea"
    CUSTOM = "custom"


class FormField(WireModel):
    """A referenceable field nested under a form."""

    id: str = Field(min_length=1, description="Field id, falling back to its name")
    name: str = Field(description="Field name, falling back to its id")
    type: str = Field(default="text", description="Raw HTML type string")
    required: bool = Field(default=False, description="Whether the field carries required")


class DetectedElement(WireModel):
    """An interactive element found in the HTML."""

    id: str = Field(min_length=1, description="Stable or positionally synthesized identifier")
    type: ElementType = Field(description="Element kind")
    tag_name: str = Field(description="Lower-case tag name")
    attributes: dict[str, str] = Field(default_factory=dict, description="Raw attributes")
    text: str | None = Field(default=None, description="Display label")
    form_fields: list[FormField] | None = Field(
        default=None,
        description="Fields of a form element",
    )


class PropertySchema(WireModel):
    """Schema of a single tool parameter."""

    type: Any = None
    description: str | None = None
    enum: list[Any] | None = None

    @field_validator("description", mode="before")
    @classmethod
    def coerce_description(cls, v: Any) -> str | None:
        return v if isinstance(v, str) else None

    @field_validator("enum", mode="before")
    @classmethod
    def coerce_enum(cls, v: Any) -> list[Any] | None:
        return v if isinstance(v, list) else None


class InputSchema(WireModel):
    """
    JSON-Schema-like parameter contract of a tool.

    Malformed pieces degrade to "no constraint" instead of failing
    validation of the whole tool.
    """

    type: str | None = None
    properties: dict[str, PropertySchema] | None = None
    required: list[str] = Field(default_factory=list)
    additional_properties: bool | None = None

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> str | None:
        return v if isinstance(v, str) else None

    @field_validator("properties", mode="before")
    @classmethod
    def coerce_properties(cls, v: Any) -> dict[str, Any] | None:
        if not isinstance(v, dict):
            return None
        return {
            str(name): (prop if isinstance(prop, (dict, PropertySchema)) else {})
            for name, prop in v.items()
        }

    @field_validator("required", mode="before")
    @classmethod
    def coerce_required(cls, v: Any) -> list[str]:
        if not isinstance(v, (list, tuple)):
            return []
        return [name for name in v if isinstance(name, str)]

    @field_validator("additional_properties", mode="before")
    @classmethod
    def coerce_additional_properties(cls, v: Any) -> bool | None:
        return v if isinstance(v, bool) else None


class ToolSchema(WireModel):
    """Declared name, server and parameter contract of a callable tool."""

    name: str = Field(min_length=1, description="Tool name")
    description: str | None = Field(default=None, description="Tool description")
    input_schema: InputSchema | None = Field(default=None, description="Parameter contract")
    server_name: str = Field(default="", description="Server exposing the tool")

    @field_validator("input_schema", mode="before")
    @classmethod
    def coerce_input_schema(cls, v: Any) -> Any:
        """Accept a JSON string; anything unparseable means no schema."""
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except ValueError:
                return None
        if isinstance(v, (dict, InputSchema)):
            return v
        return None


class ParameterSourceType(StrEnum):
    """Where a bound parameter's runtime value comes from."""

    STATIC = "static"
    """A literal value."""

    FORM = "form"
    """An element or form field id."""

    AGENT = "agent"
    """A template placeholder filled by the agent."""

    TOOL = "tool"
    """A path into a previous tool's result (not resolvable yet)."""


class ParameterSource(WireModel):
    """Origin of one parameter value, tagged by source type."""

    source_type: ParameterSourceType
    source_value: str = ""

    @field_validator("source_value", mode="before")
    @classmethod
    def coerce_value(cls, v: Any) -> str:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)


class ResponseHandler(StrEnum):
    """How the UI reacts to a tool result."""

    UPDATE_UI = "update-ui"
    SHOW_NOTIFICATION = "show-notification"
    CUSTOM = "custom"


class ActionMapping(WireModel):
    """
    Binding of one detected element to one tool invocation.

    ``ui_element_id`` is not checked against the HTML here; drift is
    reported by the validation engine.
    """

    id: str = Field(min_length=1, description="Mapping identifier")
    ui_element_id: str = Field(description="Id of the bound element")
    ui_element_type: ElementType = Field(default=ElementType.CUSTOM)
    tool_name: str = Field(description="Name of the invoked tool")
    server_name: str = Field(default="", description="Server exposing the tool")
    parameter_sources: dict[str, ParameterSource] | None = Field(
        default=None,
        description="Typed per-parameter sources",
    )
    parameter_bindings: dict[str, str] = Field(
        default_factory=dict,
        description="Legacy bindings: a literal or 'field:<id>'",
    )
    response_handler: ResponseHandler = Field(default=ResponseHandler.SHOW_NOTIFICATION)
    custom_handler_code: str | None = None

    @field_validator("parameter_bindings", mode="before")
    @classmethod
    def coerce_bindings(cls, v: Any) -> dict[str, str]:
        if not isinstance(v, dict):
            return {}
        return {str(k): ("" if val is None else str(val)) for k, val in v.items()}


class TypeMismatch(WireModel):
    """A tool parameter fed by a field of an incompatible type."""

    field: str = Field(description="'{uiElementId}.{param}'")
    expected: str = Field(description="Canonical type declared by the tool")
    actual: str = Field(description="Canonical type derived from the HTML")


class ValidationStatus(WireModel):
    """Diagnostics of one validation pass; warnings never fail it."""

    missing_mappings: list[str] = Field(default_factory=list)
    type_mismatches: list[TypeMismatch] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.missing_mappings) + len(self.type_mismatches)

    @property
    def is_valid(self) -> bool:
        return self.error_count == 0

    def summary(self) -> str:
        """Human-readable one-line summary."""
        errors = self.error_count
        warnings = len(self.warnings)
        if errors == 0 and warnings == 0:
            return "All validations passed"

        parts: list[str] = []
        if errors:
            parts.append(f"{errors} error{'s' if errors > 1 else ''}")
        if warnings:
            parts.append(f"{warnings} warning{'s' if warnings > 1 else ''}")
        return ", ".join(parts)


class ImplementationType(StrEnum):
    """Broad implementation family of an inferred tool."""

    DATABASE = "database"
    API_CALL = "api-call"
    EMAIL = "email"
    FILE_OPERATION = "file-operation"
    CALCULATION = "calculation"
    CUSTOM = "custom"


class ToolParameter(WireModel):
    """Parameter of an inferred tool."""

    name: str
    type: CanonicalType = CanonicalType.STRING
    description: str = ""
    required: bool = False


class ToolInference(WireModel):
    """Candidate tool signature inferred from HTML structure."""

    tool_name: str = Field(min_length=1)
    description: str = ""
    purpose: str = ""
    implementation_type: ImplementationType = ImplementationType.CUSTOM
    parameters: list[ToolParameter] = Field(default_factory=list)
    suggested_implementation: str = ""
    confidence: float = Field(ge=0.0, le=1.0, default=0.5)
    related_elements: list[str] = Field(default_factory=list)

    def to_tool_schema(self, server_name: str) -> ToolSchema:
        """Express the inference as a declared tool schema."""
        return ToolSchema(
            name=self.tool_name,
            description=self.description,
            server_name=server_name,
            input_schema=InputSchema(
                type="object",
                properties={
                    p.name: PropertySchema(type=p.type.value, description=p.description or None)
                    for p in self.parameters
                },
                required=[p.name for p in self.parameters if p.required],
            ),
        )


class AnalysisResult(WireModel):
    """Output of the tool inference engine."""

    inferred_tools: list[ToolInference] = Field(default_factory=list)
    suggested_mappings: list[ActionMapping] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    insights: list[str] = Field(default_factory=list)
