"""
Tool inference engine.

Proposes tool signatures and default action mappings from HTML structure
alone: one submission tool per form, one handler per standalone button
whose purpose can be recognized, and one fetch tool per data-bound
element. Results are candidates; nothing here consults the validation
engine.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog

from toolbind.canonical import CanonicalType, canonical_from_html
from toolbind.config import EngineConfig, get_config
from toolbind.document import DocumentModel, ElementNode, parse_document
from toolbind.extractor import ElementExtractor, extract_template_placeholders
from toolbind.inference.rules import (
    BUTTON_RULES,
    DATA_RULES,
    FORM_RULES,
    ButtonContext,
    DataContext,
    FormContext,
    InferenceRule,
    first_match,
)
from toolbind.models import (
    ActionMapping,
    AnalysisResult,
    DetectedElement,
    ElementType,
    FormField,
    ParameterSource,
    ParameterSourceType,
    ResponseHandler,
    ToolInference,
    ToolParameter,
)

logger = structlog.get_logger(__name__)

FORM_CONFIDENCE = 0.9
BUTTON_CONFIDENCE = 0.7
DATA_CONFIDENCE = 0.8

DATA_ATTRIBUTES = ("data-source", "data-fetch", "data-endpoint")

DEFAULT_CONTEXT_VALUE = "{}"
DEFAULT_FETCH_LIMIT = "50"


@dataclass
class _Candidate:
    """An inferred tool plus what its default mapping needs."""

    inference: ToolInference
    element_type: ElementType
    sources: dict[str, ParameterSource] = field(default_factory=dict)
    response_handler: ResponseHandler = ResponseHandler.SHOW_NOTIFICATION


class ToolInferenceEngine:
    """
    Infers tool signatures from HTML.

    The keyword heuristics live in ordered rule lists that can be
    replaced per engine instance.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        form_rules: Sequence[InferenceRule[FormContext]] = FORM_RULES,
        button_rules: Sequence[InferenceRule[ButtonContext]] = BUTTON_RULES,
        data_rules: Sequence[InferenceRule[DataContext]] = DATA_RULES,
    ) -> None:
        self.config = config or get_config()
        self.form_rules = form_rules
        self.button_rules = button_rules
        self.data_rules = data_rules
        self._extractor = ElementExtractor(self.config)
        self._log = logger.bind(component="tool_inference")

    def analyze(self, html: str) -> AnalysisResult:
        """
        Infer tools and default mappings for an HTML fragment.

        Args:
            html: HTML content

        Returns:
            AnalysisResult with inferred tools, suggested mappings,
            warnings and insights
        """
        doc = parse_document(html)
        pairs = self._extractor.extract_with_nodes(doc)
        warnings: list[str] = []
        insights: list[str] = []
        skipped_buttons: list[str] = []
        candidates: list[_Candidate] = []

        for element, node in pairs:
            if element.type == ElementType.FORM:
                candidate = self.infer_form(element, node, warnings)
            elif element.type == ElementType.BUTTON and node.closest("form") is None:
                candidate = self.infer_button(element)
                if candidate is None:
                    skipped_buttons.append(element.id)
            else:
                candidate = None
            if candidate is not None:
                candidates.append(candidate)

        candidates.extend(self._infer_data_tools(doc, pairs, warnings))
        candidates = self._dedupe(candidates, warnings)

        if candidates:
            insights.append(
                f"Inferred {len(candidates)} tool(s) from {len(pairs)} interactive element(s)"
            )
        else:
            insights.append("No tools could be inferred from this HTML")
        if skipped_buttons:
            insights.append(
                f"{len(skipped_buttons)} button(s) had no recognizable purpose and were skipped: "
                + ", ".join(skipped_buttons)
            )
        placeholders = extract_template_placeholders(html)
        if placeholders:
            insights.append(
                "Template placeholders available for agent sources: " + ", ".join(placeholders)
            )

        result = AnalysisResult(
            inferred_tools=[c.inference for c in candidates],
            suggested_mappings=[m for c in candidates for m in self.build_mappings(c)],
            warnings=warnings,
            insights=insights,
        )

        self._log.info(
            "analysis_complete",
            tools=len(result.inferred_tools),
            mappings=len(result.suggested_mappings),
            warnings=len(result.warnings),
        )
        return result

    def infer_form(
        self,
        element: DetectedElement,
        node: ElementNode,
        warnings: list[str],
    ) -> _Candidate | None:
        """Infer ``submit_{formId}`` from a form and its fields."""
        # Parameters are keyed by field name; the first field with a name wins
        fields: list[FormField] = []
        for f in element.form_fields or []:
            if all(f.name != kept.name for kept in fields):
                fields.append(f)
        if not fields:
            warnings.append(f'Form "{element.id}" has no named fields; no tool inferred')
            return None
        if ElementExtractor.identity_of(node) is None:
            warnings.append(
                f'Form "{element.id}" has no id attribute; its tool name changes if the markup is reordered'
            )

        rule = first_match(self.form_rules, FormContext(form_id=element.id, fields=fields))
        if rule is None:
            return None

        inference = ToolInference(
            tool_name=f"submit_{element.id}",
            description=rule.inference.describe(element.id),
            purpose=rule.inference.purpose,
            implementation_type=rule.inference.implementation_type,
            parameters=[
                ToolParameter(
                    name=f.name,
                    type=canonical_from_html(f.type),
                    description=f"Value of the {f.name} field",
                    required=f.required,
                )
                for f in fields
            ],
            suggested_implementation=rule.inference.suggested_implementation,
            confidence=FORM_CONFIDENCE,
            related_elements=[element.id],
        )
        return _Candidate(
            inference=inference,
            element_type=ElementType.FORM,
            sources={
                f.name: ParameterSource(source_type=ParameterSourceType.FORM, source_value=f.id)
                for f in fields
            },
        )

    def infer_button(self, element: DetectedElement) -> _Candidate | None:
        """Infer ``handle_{buttonId}``; buttons with no recognizable purpose yield None."""
        context = ButtonContext(
            button_id=element.id,
            text=element.text,
            action=element.attributes.get("data-action"),
        )
        rule = first_match(self.button_rules, context)
        if rule is None:
            return None

        inference = ToolInference(
            tool_name=f"handle_{element.id}",
            description=rule.inference.describe(element.text or element.id),
            purpose=rule.inference.purpose,
            implementation_type=rule.inference.implementation_type,
            parameters=[
                ToolParameter(
                    name="context",
                    type=CanonicalType.OBJECT,
                    description="UI context passed with the click",
                    required=False,
                )
            ],
            suggested_implementation=rule.inference.suggested_implementation,
            confidence=BUTTON_CONFIDENCE,
            related_elements=[element.id],
        )
        return _Candidate(
            inference=inference,
            element_type=ElementType.BUTTON,
            sources={
                "context": ParameterSource(
                    source_type=ParameterSourceType.STATIC,
                    source_value=DEFAULT_CONTEXT_VALUE,
                )
            },
        )

    def _infer_data_tools(
        self,
        doc: DocumentModel,
        pairs: list[tuple[DetectedElement, ElementNode]],
        warnings: list[str],
    ) -> list[_Candidate]:
        extracted = {id(node): element for element, node in pairs}
        used_ids = {element.id for element, _ in pairs}
        candidates: list[_Candidate] = []

        for node in doc.iter_elements():
            is_table = node.tag_name == "table" and bool(node.get("id"))
            if not is_table and not any(node.has_attribute(a) for a in DATA_ATTRIBUTES):
                continue

            element = extracted.get(id(node))
            if element is not None:
                element_id, element_type = element.id, element.type
            else:
                # Mappings can only reference non-interactive nodes by attribute
                element_id = ElementExtractor.identity_of(node)
                element_type = ElementType.CUSTOM
                if element_id is None:
                    warnings.append(f"Data element <{node.tag_name}> has no id; no tool inferred")
                    continue
                if element_id in used_ids:
                    warnings.append(
                        f'Data element <{node.tag_name}> reuses id "{element_id}" of another element; '
                        f"no tool inferred"
                    )
                    continue
            used_ids.add(element_id)

            context = DataContext(element_id=element_id, tag_name=node.tag_name, attributes=node.attributes)
            rule = first_match(self.data_rules, context)
            if rule is None:
                continue
            candidates.append(self.build_data_candidate(element_id, element_type, rule))

        return candidates

    @staticmethod
    def build_data_candidate(
        element_id: str,
        element_type: ElementType,
        rule: InferenceRule[DataContext],
    ) -> _Candidate:
        """Build ``fetch_{elementId}_data`` for a data-bound element."""
        inference = ToolInference(
            tool_name=f"fetch_{element_id}_data",
            description=rule.inference.describe(element_id),
            purpose=rule.inference.purpose,
            implementation_type=rule.inference.implementation_type,
            parameters=[
                ToolParameter(
                    name="filter",
                    type=CanonicalType.OBJECT,
                    description="Criteria restricting the returned records",
                ),
                ToolParameter(
                    name="limit",
                    type=CanonicalType.NUMBER,
                    description="Maximum number of records",
                ),
            ],
            suggested_implementation=rule.inference.suggested_implementation,
            confidence=DATA_CONFIDENCE,
            related_elements=[element_id],
        )
        return _Candidate(
            inference=inference,
            element_type=element_type,
            sources={
                "filter": ParameterSource(
                    source_type=ParameterSourceType.STATIC,
                    source_value=DEFAULT_CONTEXT_VALUE,
                ),
                "limit": ParameterSource(
                    source_type=ParameterSourceType.STATIC,
                    source_value=DEFAULT_FETCH_LIMIT,
                ),
            },
            response_handler=ResponseHandler.UPDATE_UI,
        )

    def build_mappings(self, candidate: _Candidate) -> list[ActionMapping]:
        """One default mapping per related element of an inferred tool."""
        inference = candidate.inference
        return [
            ActionMapping(
                id=f"{inference.tool_name}-{element_id}",
                ui_element_id=element_id,
                ui_element_type=candidate.element_type,
                tool_name=inference.tool_name,
                server_name=self.config.inferred_server_name,
                parameter_sources={
                    name: source.model_copy() for name, source in candidate.sources.items()
                },
                response_handler=candidate.response_handler,
            )
            for element_id in inference.related_elements
        ]

    @staticmethod
    def _dedupe(candidates: list[_Candidate], warnings: list[str]) -> list[_Candidate]:
        seen: set[str] = set()
        unique: list[_Candidate] = []
        for candidate in candidates:
            name = candidate.inference.tool_name
            if name in seen:
                warnings.append(f'Duplicate inferred tool "{name}" dropped')
                continue
            seen.add(name)
            unique.append(candidate)
        return unique


def analyze_for_tools(html: str, config: EngineConfig | None = None) -> AnalysisResult:
    return ToolInferenceEngine(config).analyze(html)
