"""
Validation engine for action mappings.

Cross-checks element-to-tool bindings against the current HTML, the
declared tool schemas and the template placeholders. Every problem found
is collected into a ValidationStatus; nothing is raised.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

import structlog

from toolbind.canonical import CanonicalType, canonical_from_html, canonical_from_schema, is_compatible
from toolbind.config import EngineConfig, get_config
from toolbind.document import DocumentModel, ElementNode, parse_document
from toolbind.extractor import IDENTITY_ATTRIBUTES, extract_elements, field_html_type, find_element, find_field
from toolbind.models import (
    ActionMapping,
    DetectedElement,
    ParameterSource,
    ParameterSourceType,
    PropertySchema,
    ToolSchema,
    TypeMismatch,
    ValidationStatus,
)
from toolbind.scheduler import Debouncer, ScheduledCall
from toolbind.tools import find_tool, format_tool_name, rank_similar_tools

logger = structlog.get_logger(__name__)

FIELD_REFERENCE_PREFIX = "field:"


class _Pass:
    """Accumulates diagnostics for one validate() call."""

    def __init__(self, doc: DocumentModel, elements: list[DetectedElement]) -> None:
        self.doc = doc
        self.element_ids = {element.id for element in elements}
        self.missing_mappings: list[str] = []
        self.type_mismatches: list[TypeMismatch] = []
        self.warnings: list[str] = []

    def element_exists(self, element_id: str) -> bool:
        return find_element(self.doc, element_id) is not None or element_id in self.element_ids

    def to_status(self) -> ValidationStatus:
        return ValidationStatus(
            missing_mappings=self.missing_mappings,
            type_mismatches=self.type_mismatches,
            warnings=self.warnings,
        )


class ValidationEngine:
    """
    Validates action mappings.

    validate() is a pure function of its arguments: the HTML is parsed
    afresh on every call and no state survives between calls.
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or get_config()
        self._log = logger.bind(component="validation_engine")

    def validate(
        self,
        mappings: Sequence[ActionMapping],
        html: str,
        tools: Sequence[ToolSchema],
        placeholders: Sequence[str] | None = None,
    ) -> ValidationStatus:
        """
        Validate mappings against HTML, tool schemas and placeholders.

        Args:
            mappings: Action mappings to check
            html: Current HTML content
            tools: Declared tool schemas
            placeholders: Declared template placeholders; None skips the
                placeholder membership check for agent sources

        Returns:
            ValidationStatus with every problem found
        """
        doc = parse_document(html)
        elements = extract_elements(doc, self.config)
        state = _Pass(doc, elements)
        declared = None if placeholders is None else set(placeholders)

        self._check_unmapped_elements(elements, mappings, state)
        for mapping in mappings:
            self._check_mapping(mapping, tools, declared, state)

        status = state.to_status()
        self._log.debug(
            "validation_complete",
            mappings=len(mappings),
            elements=len(elements),
            missing=len(status.missing_mappings),
            mismatches=len(status.type_mismatches),
            warnings=len(status.warnings),
        )
        return status

    def _check_unmapped_elements(
        self,
        elements: list[DetectedElement],
        mappings: Sequence[ActionMapping],
        state: _Pass,
    ) -> None:
        mapped_ids = {m.ui_element_id for m in mappings}
        for element in elements:
            # A mapping may reference the element by any identifying attribute
            references = {element.id}
            references.update(element.attributes[a] for a in IDENTITY_ATTRIBUTES if element.attributes.get(a))
            if references.isdisjoint(mapped_ids):
                state.warnings.append(
                    f'Interactive element "{element.id}" ({element.type}) is not mapped to any tool'
                )

    def _check_mapping(
        self,
        mapping: ActionMapping,
        tools: Sequence[ToolSchema],
        placeholders: set[str] | None,
        state: _Pass,
    ) -> None:
        element_id = mapping.ui_element_id
        if not state.element_exists(element_id):
            state.missing_mappings.append(f'Element "{element_id}" not found in HTML')
            return

        tool = find_tool(tools, mapping.tool_name, mapping.server_name)
        if tool is None:
            message = f'Tool "{mapping.tool_name}" from server "{mapping.server_name}" not found'
            wanted = (
                format_tool_name(mapping.server_name, mapping.tool_name) if mapping.server_name else mapping.tool_name
            )
            closest = rank_similar_tools(wanted, tools, 1)
            if closest:
                message += f'; did you mean "{closest[0].name}" from server "{closest[0].server_name}"?'
            state.missing_mappings.append(message)
            return

        schema = tool.input_schema
        properties = schema.properties if schema is not None else None
        sources = mapping.parameter_sources or {}
        reported: set[str] = set()

        for param in schema.required if schema is not None else []:
            if self._has_value(mapping, param):
                continue
            state.missing_mappings.append(
                f'Required parameter "{param}" not mapped for element "{element_id}"'
            )
            reported.add(param)

        for param, source in sources.items():
            if param in reported:
                continue
            prop = None
            if properties is not None:
                prop = properties.get(param)
                if prop is None:
                    state.warnings.append(
                        f'Parameter "{param}" not found in tool schema for element "{element_id}"'
                    )
            self._check_source(mapping, param, source, prop, placeholders, state)

        # Legacy bindings only fill parameters without a typed source
        if properties is None:
            return
        for param, value in mapping.parameter_bindings.items():
            if param in sources or param in reported:
                continue
            prop = properties.get(param)
            if prop is None:
                state.warnings.append(
                    f'Parameter "{param}" not found in tool schema for element "{element_id}"'
                )
                continue
            self._check_legacy_binding(mapping, param, value, prop, state)

    @staticmethod
    def _has_value(mapping: ActionMapping, param: str) -> bool:
        source = (mapping.parameter_sources or {}).get(param)
        if source is not None and source.source_value:
            return True
        return bool(mapping.parameter_bindings.get(param))

    def _check_source(
        self,
        mapping: ActionMapping,
        param: str,
        source: ParameterSource,
        prop: PropertySchema | None,
        placeholders: set[str] | None,
        state: _Pass,
    ) -> None:
        element_id = mapping.ui_element_id
        value = source.source_value

        match source.source_type:
            case ParameterSourceType.STATIC:
                if not value:
                    state.missing_mappings.append(
                        f'Static value for parameter "{param}" is empty for element "{element_id}"'
                    )
            case ParameterSourceType.FORM:
                node = find_field(state.doc, value)
                if node is None:
                    state.missing_mappings.append(
                        f'Form field "{value}" for parameter "{param}" not found in HTML '
                        f'for element "{element_id}"'
                    )
                elif prop is not None:
                    self._compare_types(mapping, param, prop, node, state)
            case ParameterSourceType.AGENT:
                if not value:
                    state.missing_mappings.append(
                        f'Agent placeholder for parameter "{param}" is empty for element "{element_id}"'
                    )
                elif placeholders is not None and value not in placeholders:
                    state.missing_mappings.append(
                        f'Agent placeholder "{{{{{value}}}}}" for parameter "{param}" is not declared '
                        f'in the template for element "{element_id}"'
                    )
            case ParameterSourceType.TOOL:
                state.warnings.append(
                    f'Parameter "{param}" of element "{element_id}" uses tool result "{value}", '
                    f"which cannot be resolved yet"
                )

    def _check_legacy_binding(
        self,
        mapping: ActionMapping,
        param: str,
        value: str,
        prop: PropertySchema,
        state: _Pass,
    ) -> None:
        is_reference = value.startswith(FIELD_REFERENCE_PREFIX)
        field_id = value[len(FIELD_REFERENCE_PREFIX):] if is_reference else value
        node = find_field(state.doc, field_id)
        if node is not None:
            self._compare_types(mapping, param, prop, node, state)
        elif is_reference:
            state.missing_mappings.append(
                f'Form field "{field_id}" for parameter "{param}" not found in HTML '
                f'for element "{mapping.ui_element_id}"'
            )
        # Anything else is a literal value

    @staticmethod
    def _compare_types(
        mapping: ActionMapping,
        param: str,
        prop: PropertySchema,
        node: ElementNode,
        state: _Pass,
    ) -> None:
        expected = canonical_from_schema(prop.type)
        if expected == CanonicalType.ANY:
            return
        actual = canonical_from_html(field_html_type(node))
        if not is_compatible(expected, actual):
            state.type_mismatches.append(
                TypeMismatch(
                    field=f"{mapping.ui_element_id}.{param}",
                    expected=expected.value,
                    actual=actual.value,
                )
            )


def validate_action_mappings(
    mappings: Sequence[ActionMapping],
    html: str,
    tools: Sequence[ToolSchema],
    placeholders: Sequence[str] | None = None,
    config: EngineConfig | None = None,
) -> ValidationStatus:
    return ValidationEngine(config).validate(mappings, html, tools, placeholders)


def validate_action_mappings_debounced(
    debouncer: Debouncer,
    mappings: Sequence[ActionMapping],
    html: str,
    tools: Sequence[ToolSchema],
    callback: Callable[[ValidationStatus], object],
    placeholders: Sequence[str] | None = None,
) -> ScheduledCall:
    """
    Schedule a validation pass, superseding any pending one on the same debouncer.

    The inputs are snapshotted at call time so later edits by the caller
    cannot leak into the scheduled pass.
    """
    snapshot = (
        [m.model_copy(deep=True) for m in mappings],
        html,
        [t.model_copy(deep=True) for t in tools],
        None if placeholders is None else list(placeholders),
    )

    def run() -> None:
        callback(validate_action_mappings(*snapshot))

    return debouncer.schedule(run)


def is_validation_valid(status: ValidationStatus) -> bool:
    return status.is_valid


def get_validation_summary(status: ValidationStatus) -> str:
    return status.summary()
