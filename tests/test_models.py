"""
Tests for toolbind models and configuration.

These tests verify wire-name handling, lenient parsing of malformed tool
schemas, validation status summaries and environment configuration.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from toolbind.canonical import CanonicalType
from toolbind.config import EngineConfig
from toolbind.models import (
    ActionMapping,
    ElementType,
    ImplementationType,
    ParameterSource,
    ParameterSourceType,
    ResponseHandler,
    ToolInference,
    ToolParameter,
    ToolSchema,
    TypeMismatch,
    ValidationStatus,
)


class TestActionMapping:
    """Test ActionMapping parsing."""

    def test_from_camel_case_wire_shape(self) -> None:
        """Editor payloads use camelCase names."""
        mapping = ActionMapping.model_validate(
            {
                "id": "m1",
                "uiElementId": "f",
                "uiElementType": "form",
                "toolName": "send",
                "serverName": "mail",
                "parameterSources": {"to": {"sourceType": "form", "sourceValue": "email"}},
                "parameterBindings": {"subject": "Hello"},
                "responseHandler": "update-ui",
            }
        )

        assert mapping.ui_element_type == ElementType.FORM
        assert mapping.parameter_sources == {
            "to": ParameterSource(source_type=ParameterSourceType.FORM, source_value="email")
        }
        assert mapping.parameter_bindings == {"subject": "Hello"}
        assert mapping.response_handler == ResponseHandler.UPDATE_UI

    def test_defaults(self) -> None:
        mapping = ActionMapping(id="m", ui_element_id="b", tool_name="t")

        assert mapping.server_name == ""
        assert mapping.parameter_sources is None
        assert mapping.parameter_bindings == {}
        assert mapping.response_handler == ResponseHandler.SHOW_NOTIFICATION

    def test_to_wire_uses_camel_case(self) -> None:
        """to_wire() emits camelCase keys and drops None values."""
        wire = ActionMapping(id="m", ui_element_id="b", tool_name="t").to_wire()

        assert wire["uiElementId"] == "b"
        assert "parameterSources" not in wire
        assert "customHandlerCode" not in wire

    def test_non_string_values_are_stringified(self) -> None:
        """Legacy bindings and source values are stored as strings."""
        mapping = ActionMapping(
            id="m",
            ui_element_id="b",
            tool_name="t",
            parameter_sources={"limit": {"source_type": "static", "source_value": 50}},
            parameter_bindings={"flag": True, "none": None},
        )

        assert mapping.parameter_sources["limit"].source_value == "50"  # type: ignore[index]
        assert mapping.parameter_bindings == {"flag": "True", "none": ""}

    def test_unknown_source_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ParameterSource.model_validate({"sourceType": "cookie", "sourceValue": "x"})


class TestToolSchema:
    """Test lenient tool schema parsing."""

    def test_input_schema_from_json_string(self) -> None:
        tool = ToolSchema.model_validate(
            {
                "name": "t",
                "serverName": "s",
                "inputSchema": '{"type": "object", "properties": {"q": {"type": "string"}}, "required": ["q"]}',
            }
        )

        assert tool.input_schema is not None
        assert tool.input_schema.required == ["q"]
        assert tool.input_schema.properties["q"].type == "string"  # type: ignore[index]

    @pytest.mark.parametrize("raw", ["{not json", "[1, 2]", 17, ["a"]])
    def test_unusable_input_schema_becomes_none(self, raw: object) -> None:
        """A malformed schema means no constraint, not a parse failure."""
        tool = ToolSchema.model_validate({"name": "t", "inputSchema": raw})

        assert tool.input_schema is None

    def test_malformed_parts_degrade(self) -> None:
        """Bad properties, required and additionalProperties are dropped piecewise."""
        tool = ToolSchema.model_validate(
            {
                "name": "t",
                "inputSchema": {
                    "type": 5,
                    "properties": {"a": "string", "b": {"type": "number", "description": 3}},
                    "required": "a",
                    "additionalProperties": "no",
                },
            }
        )

        schema = tool.input_schema
        assert schema is not None
        assert schema.type is None
        assert schema.properties["a"].type is None  # type: ignore[index]
        assert schema.properties["b"].type == "number"  # type: ignore[index]
        assert schema.properties["b"].description is None  # type: ignore[index]
        assert schema.required == []
        assert schema.additional_properties is None

    def test_properties_not_a_dict(self) -> None:
        tool = ToolSchema.model_validate({"name": "t", "inputSchema": {"properties": ["a"], "required": ["a", 3]}})

        assert tool.input_schema is not None
        assert tool.input_schema.properties is None
        assert tool.input_schema.required == ["a"]


class TestValidationStatus:
    """Test ValidationStatus validity and summary."""

    def test_empty_status(self) -> None:
        status = ValidationStatus()

        assert status.is_valid
        assert status.summary() == "All validations passed"

    def test_warnings_do_not_invalidate(self) -> None:
        status = ValidationStatus(warnings=["w"])

        assert status.is_valid
        assert status.summary() == "1 warning"

    def test_errors_and_warnings(self) -> None:
        status = ValidationStatus(
            missing_mappings=["a"],
            type_mismatches=[TypeMismatch(field="f.p", expected="number", actual="string")],
            warnings=["w1", "w2"],
        )

        assert not status.is_valid
        assert status.error_count == 2
        assert status.summary() == "2 errors, 2 warnings"

    def test_single_error(self) -> None:
        assert ValidationStatus(missing_mappings=["a"]).summary() == "1 error"

    def test_wire_shape(self) -> None:
        status = ValidationStatus(
            type_mismatches=[TypeMismatch(field="f.p", expected="number", actual="string")]
        )

        assert status.to_wire() == {
            "missingMappings": [],
            "typeMismatches": [{"field": "f.p", "expected": "number", "actual": "string"}],
            "warnings": [],
        }


class TestToolInference:
    """Test ToolInference."""

    def test_confidence_bounds(self) -> None:
        with pytest.raises(ValidationError):
            ToolInference(tool_name="t", confidence=1.5)

    def test_to_tool_schema(self) -> None:
        """Inferred parameters become schema properties and required names."""
        inference = ToolInference(
            tool_name="submit_f",
            description="Submits f",
            implementation_type=ImplementationType.DATABASE,
            parameters=[
                ToolParameter(name="email", type=CanonicalType.STRING, required=True),
                ToolParameter(name="age", type=CanonicalType.NUMBER),
            ],
            confidence=0.9,
        )

        tool = inference.to_tool_schema("inferred")

        assert tool.name == "submit_f"
        assert tool.server_name == "inferred"
        assert tool.input_schema is not None
        assert tool.input_schema.required == ["email"]
        assert {k: v.type for k, v in (tool.input_schema.properties or {}).items()} == {
            "email": "string",
            "age": "number",
        }


class TestEngineConfig:
    """Test EngineConfig."""

    def test_defaults(self) -> None:
        config = EngineConfig()

        assert config.debounce_delay == 0.3
        assert config.max_text_length == 50
        assert config.inferred_server_name == "inferred"
        assert config.external_href_prefixes == ("http://", "https://", "/")

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TOOLBIND_DEBOUNCE_DELAY", "0.5")
        monkeypatch.setenv("TOOLBIND_MAX_TEXT_LENGTH", "20")
        monkeypatch.setenv("TOOLBIND_INFERRED_SERVER_NAME", "generated")
        monkeypatch.setenv("TOOLBIND_EXTERNAL_HREF_PREFIXES", "https://, mailto:,")

        config = EngineConfig.from_env()

        assert config.debounce_delay == 0.5
        assert config.max_text_length == 20
        assert config.inferred_server_name == "generated"
        assert config.external_href_prefixes == ("https://", "mailto:")

    def test_from_env_without_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in (
            "TOOLBIND_DEBOUNCE_DELAY",
            "TOOLBIND_MAX_TEXT_LENGTH",
            "TOOLBIND_INFERRED_SERVER_NAME",
            "TOOLBIND_EXTERNAL_HREF_PREFIXES",
        ):
            monkeypatch.delenv(name, raising=False)

        assert EngineConfig.from_env() == EngineConfig()

    def test_invalid_env_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TOOLBIND_DEBOUNCE_DELAY", "-1")

        with pytest.raises(ValidationError):
            EngineConfig.from_env()
