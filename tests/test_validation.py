"""
Tests for the validation engine.

These tests verify that action mappings are checked against the HTML,
the tool schemas and the declared template placeholders, and that every
problem lands in the right bucket of the ValidationStatus.
"""

from __future__ import annotations

import asyncio

import pytest

from toolbind.models import (
    ActionMapping,
    InputSchema,
    ParameterSource,
    ParameterSourceType,
    PropertySchema,
    ToolSchema,
    TypeMismatch,
    ValidationStatus,
)
from toolbind.scheduler import Debouncer
from toolbind.validation import (
    ValidationEngine,
    get_validation_summary,
    is_validation_valid,
    validate_action_mappings,
    validate_action_mappings_debounced,
)


def make_tool(
    name: str,
    properties: dict[str, str | None],
    required: list[str] | None = None,
    server_name: str = "demo",
) -> ToolSchema:
    """Build a tool schema from a {param: json_type} map."""
    return ToolSchema(
        name=name,
        server_name=server_name,
        input_schema=InputSchema(
            type="object",
            properties={p: PropertySchema(type=t) for p, t in properties.items()},
            required=required or [],
        ),
    )


def make_mapping(
    element_id: str,
    tool_name: str,
    sources: dict[str, ParameterSource] | None = None,
    bindings: dict[str, str] | None = None,
    server_name: str = "demo",
) -> ActionMapping:
    return ActionMapping(
        id=f"map-{element_id}",
        ui_element_id=element_id,
        tool_name=tool_name,
        server_name=server_name,
        parameter_sources=sources,
        parameter_bindings=bindings or {},
    )


def form_source(field_id: str) -> ParameterSource:
    return ParameterSource(source_type=ParameterSourceType.FORM, source_value=field_id)


def static_source(value: str) -> ParameterSource:
    return ParameterSource(source_type=ParameterSourceType.STATIC, source_value=value)


def agent_source(name: str) -> ParameterSource:
    return ParameterSource(source_type=ParameterSourceType.AGENT, source_value=name)


class TestFormMappings:
    """Test mappings whose parameters come from form fields."""

    def test_valid_form_mapping(self, email_form_html: str) -> None:
        """A required string parameter fed by an email field passes cleanly."""
        tool = make_tool("subscribe", {"email": "string"}, required=["email"])
        mapping = make_mapping("f", "subscribe", {"email": form_source("email")})

        status = validate_action_mappings([mapping], email_form_html, [tool])

        assert status == ValidationStatus()
        assert status.is_valid

    def test_type_mismatch(self, email_form_html: str) -> None:
        """A number parameter fed by an email field is a mismatch."""
        tool = make_tool("subscribe", {"email": "number"}, required=["email"])
        mapping = make_mapping("f", "subscribe", {"email": form_source("email")})

        status = validate_action_mappings([mapping], email_form_html, [tool])

        assert status.type_mismatches == [TypeMismatch(field="f.email", expected="number", actual="string")]
        assert status.missing_mappings == []
        assert not status.is_valid

    def test_missing_form_field(self, email_form_html: str) -> None:
        tool = make_tool("subscribe", {"email": "string"})
        mapping = make_mapping("f", "subscribe", {"email": form_source("ghost")})

        status = validate_action_mappings([mapping], email_form_html, [tool])

        assert len(status.missing_mappings) == 1
        assert '"ghost"' in status.missing_mappings[0]

    def test_field_resolved_by_name(self) -> None:
        """Form sources resolve through id, name and data-field-id."""
        html = '<form id="f"><input name="qty" type="number"><input data-field-id="ok" type="checkbox"></form>'
        tool = make_tool("order", {"qty": "integer", "ok": "boolean"})
        mapping = make_mapping("f", "order", {"qty": form_source("qty"), "ok": form_source("ok")})

        status = validate_action_mappings([mapping], html, [tool])

        assert status.is_valid
        assert status.warnings == []

    def test_multi_select_feeds_array(self) -> None:
        html = '<form id="f"><select id="tags" multiple></select><select id="one"></select></form>'
        tool = make_tool("tag", {"tags": "array", "one": "array"})
        mapping = make_mapping("f", "tag", {"tags": form_source("tags"), "one": form_source("one")})

        status = validate_action_mappings([mapping], html, [tool])

        assert status.type_mismatches == [TypeMismatch(field="f.one", expected="array", actual="string")]

    @pytest.mark.parametrize("schema_type", [None, "decimal", ["string", "number"]])
    def test_unconstrained_parameter_never_mismatches(self, email_form_html: str, schema_type: object) -> None:
        tool = ToolSchema(
            name="t",
            server_name="demo",
            input_schema={"properties": {"email": {"type": schema_type}}},
        )
        mapping = make_mapping("f", "t", {"email": form_source("email")})

        assert validate_action_mappings([mapping], email_form_html, [tool]).type_mismatches == []

    def test_nullable_union_is_compared(self, email_form_html: str) -> None:
        tool = ToolSchema(
            name="t",
            server_name="demo",
            input_schema={"properties": {"email": {"type": ["number", "null"]}}},
        )
        mapping = make_mapping("f", "t", {"email": form_source("email")})

        status = validate_action_mappings([mapping], email_form_html, [tool])

        assert status.type_mismatches == [TypeMismatch(field="f.email", expected="number", actual="string")]


class TestElementAndToolResolution:
    """Test element drift and tool lookup."""

    def test_missing_element(self, email_form_html: str) -> None:
        """A mapping to an element absent from the HTML is reported once, with its id."""
        tool = make_tool("subscribe", {"email": "string"}, required=["email"])
        mapping = make_mapping("ghost", "subscribe", {"email": form_source("email")})

        status = validate_action_mappings([mapping], email_form_html, [tool])

        assert status.missing_mappings == ['Element "ghost" not found in HTML']

    def test_missing_element_with_empty_html(self) -> None:
        mapping = make_mapping("b", "t")

        status = validate_action_mappings([mapping], "", [make_tool("t", {})])

        assert status.missing_mappings == ['Element "b" not found in HTML']
        assert status.warnings == []

    def test_tool_not_found(self, email_form_html: str) -> None:
        tool = make_tool("subscribe", {"email": "string"}, server_name="other")
        mapping = make_mapping("f", "subscribe", {"email": form_source("email")})

        status = validate_action_mappings([mapping], email_form_html, [tool])

        assert status.missing_mappings == [
            'Tool "subscribe" from server "demo" not found; did you mean "subscribe" from server "other"?'
        ]

    def test_tool_not_found_suggests_closest_tool(self, email_form_html: str) -> None:
        """A misspelled tool name points at the nearest available tool."""
        tools = [
            make_tool("unsubscribe", {"email": "string"}),
            make_tool("subscribe", {"email": "string"}),
            make_tool("query", {}, server_name="db"),
        ]
        mapping = make_mapping("f", "subscrib", {"email": form_source("email")})

        status = validate_action_mappings([mapping], email_form_html, tools)

        assert status.missing_mappings == [
            'Tool "subscrib" from server "demo" not found; did you mean "subscribe" from server "demo"?'
        ]

    def test_tool_not_found_without_tools(self, email_form_html: str) -> None:
        mapping = make_mapping("f", "subscribe", {"email": form_source("email")})

        status = validate_action_mappings([mapping], email_form_html, [])

        assert status.missing_mappings == ['Tool "subscribe" from server "demo" not found']

    @pytest.mark.parametrize(
        ("html", "element_id"),
        [
            ('<button id="b" name="save">Save</button>', "save"),
            ('<button data-action-id="save-action">Save</button>', "save-action"),
            ("<button>Save</button>", "button-1"),
        ],
    )
    def test_element_reference_forms(self, html: str, element_id: str) -> None:
        """Mappings may reference an element by any identifier or its synthesized id."""
        mapping = make_mapping(element_id, "save", {"context": static_source("{}")})

        status = validate_action_mappings([mapping], html, [make_tool("save", {"context": "object"})])

        assert status == ValidationStatus()

    def test_tool_without_schema(self) -> None:
        """Without an input schema only element and tool existence are checked."""
        html = '<button id="b">Go</button>'
        tool = ToolSchema(name="t", server_name="demo", input_schema="{not json")
        mapping = make_mapping("b", "t", {"anything": static_source("x")}, {"legacy": "field:nowhere"})

        status = validate_action_mappings([mapping], html, [tool])

        assert status == ValidationStatus()


class TestRequiredParameters:
    """Test required parameter coverage."""

    def test_each_missing_required_parameter_reported_once(self) -> None:
        html = '<form id="f"><input id="email" name="email" type="email"></form>'
        tool = make_tool("register", {"email": "string", "name": "string"}, required=["email", "name"])
        mapping = make_mapping(
            "f",
            "register",
            {"email": form_source("email"), "name": static_source("")},
        )

        status = validate_action_mappings([mapping], html, [tool])

        naming = [m for m in status.missing_mappings if '"name"' in m]
        assert naming == ['Required parameter "name" not mapped for element "f"']
        assert len(status.missing_mappings) == 1

    def test_legacy_binding_satisfies_required(self) -> None:
        html = '<button id="b">Go</button>'
        tool = make_tool("t", {"q": "string"}, required=["q"])
        mapping = make_mapping("b", "t", bindings={"q": "hello"})

        assert validate_action_mappings([mapping], html, [tool]).is_valid

    def test_required_without_properties(self) -> None:
        """Required names are enforced even when properties are missing."""
        html = '<button id="b">Go</button>'
        tool = ToolSchema(name="t", server_name="demo", input_schema={"required": ["q"]})
        mapping = make_mapping("b", "t")

        status = validate_action_mappings([mapping], html, [tool])

        assert status.missing_mappings == ['Required parameter "q" not mapped for element "b"']


class TestParameterSources:
    """Test static, agent and tool sources."""

    HTML = '<button id="b">Go</button>'

    def test_empty_static_value(self) -> None:
        tool = make_tool("t", {"mode": "string"})
        mapping = make_mapping("b", "t", {"mode": static_source("")})

        status = validate_action_mappings([mapping], self.HTML, [tool])

        assert len(status.missing_mappings) == 1
        assert '"mode"' in status.missing_mappings[0]

    def test_static_values_are_not_type_checked(self) -> None:
        tool = make_tool("t", {"limit": "number"})
        mapping = make_mapping("b", "t", {"limit": static_source("fifty")})

        assert validate_action_mappings([mapping], self.HTML, [tool]) == ValidationStatus()

    def test_agent_placeholder_declared(self) -> None:
        tool = make_tool("t", {"user": "string"})
        mapping = make_mapping("b", "t", {"user": agent_source("user.name")})

        status = validate_action_mappings([mapping], self.HTML, [tool], placeholders=["user.name"])

        assert status.is_valid

    def test_agent_placeholder_undeclared(self) -> None:
        tool = make_tool("t", {"user": "string"})
        mapping = make_mapping("b", "t", {"user": agent_source("user.id")})

        status = validate_action_mappings([mapping], self.HTML, [tool], placeholders=["user.name"])

        assert len(status.missing_mappings) == 1
        assert "{{user.id}}" in status.missing_mappings[0]

    def test_agent_placeholder_not_checked_without_declarations(self) -> None:
        tool = make_tool("t", {"user": "string"})
        mapping = make_mapping("b", "t", {"user": agent_source("user.id")})

        assert validate_action_mappings([mapping], self.HTML, [tool]).is_valid

    def test_empty_agent_placeholder(self) -> None:
        tool = make_tool("t", {"user": "string"})
        mapping = make_mapping("b", "t", {"user": agent_source("")})

        assert not validate_action_mappings([mapping], self.HTML, [tool], placeholders=[]).is_valid

    def test_tool_source_warns(self) -> None:
        tool = make_tool("t", {"token": "string"})
        source = ParameterSource(source_type=ParameterSourceType.TOOL, source_value="login.token")
        mapping = make_mapping("b", "t", {"token": source})

        status = validate_action_mappings([mapping], self.HTML, [tool])

        assert status.is_valid
        assert len(status.warnings) == 1
        assert "login.token" in status.warnings[0]

    def test_unknown_parameter_warns(self) -> None:
        tool = make_tool("t", {"q": "string"})
        mapping = make_mapping("b", "t", {"q": static_source("x"), "extra": static_source("y")})

        status = validate_action_mappings([mapping], self.HTML, [tool])

        assert status.is_valid
        assert status.warnings == ['Parameter "extra" not found in tool schema for element "b"']


class TestLegacyBindings:
    """Test legacy parameter bindings."""

    HTML = '<form id="f"><input id="amount" name="amount" type="text"></form>'

    def test_field_reference_type_checked(self) -> None:
        tool = make_tool("pay", {"amount": "number"})
        mapping = make_mapping("f", "pay", bindings={"amount": "field:amount"})

        status = validate_action_mappings([mapping], self.HTML, [tool])

        assert status.type_mismatches == [TypeMismatch(field="f.amount", expected="number", actual="string")]

    def test_bare_field_id_type_checked(self) -> None:
        tool = make_tool("pay", {"amount": "number"})
        mapping = make_mapping("f", "pay", bindings={"amount": "amount"})

        assert len(validate_action_mappings([mapping], self.HTML, [tool]).type_mismatches) == 1

    def test_unresolved_field_reference(self) -> None:
        tool = make_tool("pay", {"amount": "number"})
        mapping = make_mapping("f", "pay", bindings={"amount": "field:missing"})

        status = validate_action_mappings([mapping], self.HTML, [tool])

        assert len(status.missing_mappings) == 1
        assert '"missing"' in status.missing_mappings[0]

    def test_literal_value(self) -> None:
        tool = make_tool("pay", {"amount": "number"})
        mapping = make_mapping("f", "pay", bindings={"amount": "42"})

        assert validate_action_mappings([mapping], self.HTML, [tool]) == ValidationStatus()

    def test_typed_source_wins_over_binding(self) -> None:
        """A parameter with a typed source ignores its legacy binding."""
        tool = make_tool("pay", {"amount": "string"})
        mapping = make_mapping(
            "f",
            "pay",
            {"amount": form_source("amount")},
            bindings={"amount": "field:missing"},
        )

        assert validate_action_mappings([mapping], self.HTML, [tool]) == ValidationStatus()


class TestUnmappedElements:
    """Test unmapped element warnings."""

    def test_every_unmapped_element_warns(self) -> None:
        html = '<button id="a">A</button><button>B</button><a href="#x">C</a>'

        status = validate_action_mappings([], html, [])

        assert status.is_valid
        assert status.warnings == [
            'Interactive element "a" (button) is not mapped to any tool',
            'Interactive element "button-2" (button) is not mapped to any tool',
            'Interactive element "a-1" (link) is not mapped to any tool',
        ]

    def test_mapped_by_attribute_reference(self) -> None:
        html = '<button id="b" name="save">Save</button>'
        mapping = make_mapping("save", "t")

        status = validate_action_mappings([mapping], html, [make_tool("t", {})])

        assert status.warnings == []


class TestScenarios:
    """End-to-end validation scenarios."""

    def test_agent_placeholders_from_template(self) -> None:
        """Placeholders found in the template satisfy agent sources."""
        html = '<div><p>Hi {{user.name}}</p><button id="greet">Greet</button></div>'
        tool = make_tool("greet", {"name": "string"}, required=["name"])
        mapping = make_mapping("greet", "greet", {"name": agent_source("user.name")})

        engine = ValidationEngine()

        assert engine.validate([mapping], html, [tool], ["user.name"]).is_valid
        assert not engine.validate([mapping], html, [tool], ["user.email"]).is_valid

    def test_validation_is_pure(self, contact_form_html: str) -> None:
        """Repeated calls with the same inputs give equal results."""
        tool = make_tool("send", {"email": "number", "name": "string"}, required=["email", "name"])
        mapping = make_mapping("contact", "send", {"email": form_source("email")})

        first = validate_action_mappings([mapping], contact_form_html, [tool])
        second = validate_action_mappings([mapping], contact_form_html, [tool])

        assert first == second
        assert first.missing_mappings and first.type_mismatches and first.warnings

    def test_helpers(self) -> None:
        status = ValidationStatus(warnings=["w"])

        assert is_validation_valid(status)
        assert get_validation_summary(status) == "1 warning"


class TestDebouncedValidation:
    """Test validate_action_mappings_debounced()."""

    @pytest.mark.asyncio
    async def test_only_latest_request_validates(self, email_form_html: str) -> None:
        results: list[ValidationStatus] = []
        debouncer = Debouncer(delay=0.02)
        tool = make_tool("subscribe", {"email": "string"}, required=["email"])
        stale = make_mapping("ghost", "subscribe", {"email": form_source("email")})
        fresh = make_mapping("f", "subscribe", {"email": form_source("email")})

        validate_action_mappings_debounced(debouncer, [stale], email_form_html, [tool], results.append)
        validate_action_mappings_debounced(debouncer, [fresh], email_form_html, [tool], results.append)
        await asyncio.sleep(0.1)

        assert results == [ValidationStatus()]

    @pytest.mark.asyncio
    async def test_inputs_are_snapshotted(self, email_form_html: str) -> None:
        """Mutating the caller's list after scheduling does not affect the pass."""
        results: list[ValidationStatus] = []
        tool = make_tool("subscribe", {"email": "string"}, required=["email"])
        mappings = [make_mapping("f", "subscribe", {"email": form_source("email")})]

        validate_action_mappings_debounced(Debouncer(delay=0.01), mappings, email_form_html, [tool], results.append)
        mappings.append(make_mapping("ghost", "subscribe"))
        await asyncio.sleep(0.05)

        assert len(results) == 1
        assert results[0].is_valid
