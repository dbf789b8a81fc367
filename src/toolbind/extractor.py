"""
Interactive element extractor.

Walks a parsed document, selects the nodes a user can wire to a tool
(buttons, action links, forms, button inputs, standalone selects and
anything carrying data-action) and turns them into DetectedElement
records with stable identifiers and nested form fields.
"""

from __future__ import annotations

import re
from collections import defaultdict
from typing import Final

import structlog

from toolbind.canonical import CanonicalType, canonical_from_html
from toolbind.config import EngineConfig, get_config
from toolbind.document import DocumentModel, ElementNode, parse_document
from toolbind.models import DetectedElement, ElementType, FormField

logger = structlog.get_logger(__name__)

FIELD_TAGS: Final = ("input", "select", "textarea")

# Input types that trigger an action
ACTION_INPUT_TYPES: Final = frozenset({"button", "submit"})

# Input types that carry no data and are never form fields
NON_DATA_INPUT_TYPES: Final = frozenset({"button", "submit", "reset", "image"})

# Identifying attributes, in precedence order
IDENTITY_ATTRIBUTES: Final = ("id", "data-action-id", "name")

TAG_TO_ELEMENT_TYPE: Final[dict[str, ElementType]] = {
    "button": ElementType.BUTTON,
    "a": ElementType.LINK,
    "form": ElementType.FORM,
    "input": ElementType.INPUT,
    "select": ElementType.SELECT,
    "textarea": ElementType.TEXTAREA,
}

PLACEHOLDER_PATTERN: Final = re.compile(r"\{\{([\w.]+)\}\}")


def _attr(node: ElementNode, name: str) -> str:
    return (node.get(name) or "").strip()


def field_html_type(node: ElementNode) -> str:
    """Raw HTML type string of a field node."""
    if node.tag_name == "input":
        return _attr(node, "type").lower() or "text"
    if node.tag_name == "select":
        return "select-multiple" if node.has_attribute("multiple") else "select"
    if node.tag_name == "textarea":
        return "textarea"
    return "text"


class ElementExtractor:
    """
    Extracts interactive elements from a parsed document.

    Identifiers follow the precedence id, data-action-id, name; nodes
    with none of these get "{tagName}-{ordinal}", where the ordinal is
    the 1-based position among selected nodes of the same tag.
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or get_config()

    def extract(self, doc: DocumentModel) -> list[DetectedElement]:
        """
        Extract interactive elements in document order.

        Args:
            doc: Parsed document

        Returns:
            Detected elements with distinct ids
        """
        return [element for element, _ in self.extract_with_nodes(doc)]

    def extract_with_nodes(self, doc: DocumentModel) -> list[tuple[DetectedElement, ElementNode]]:
        """Extract elements paired with the document nodes they came from."""
        pairs: list[tuple[DetectedElement, ElementNode]] = []
        used_ids: set[str] = set()
        ordinals: dict[str, int] = defaultdict(int)

        for node in doc.iter_elements():
            if not self.is_interactive(node):
                continue

            ordinals[node.tag_name] += 1
            ordinal = ordinals[node.tag_name]
            element_type = TAG_TO_ELEMENT_TYPE.get(node.tag_name, ElementType.CUSTOM)
            element_id = self._unique_id(
                self.identity_of(node) or f"{node.tag_name}-{ordinal}",
                used_ids,
            )

            element = DetectedElement(
                id=element_id,
                type=element_type,
                tag_name=node.tag_name,
                attributes=dict(node.attributes),
                text=self._label(node, element_type, ordinal),
                form_fields=self.extract_form_fields(node) if element_type == ElementType.FORM else None,
            )
            pairs.append((element, node))

        logger.debug("elements_extracted", count=len(pairs))
        return pairs

    def is_interactive(self, node: ElementNode) -> bool:
        """Whether a node belongs to the interactive selection set."""
        tag = node.tag_name
        if tag in ("button", "form"):
            return True
        if tag == "a" and node.has_attribute("href") and self.is_action_href(_attr(node, "href")):
            return True
        if tag == "input" and _attr(node, "type").lower() in ACTION_INPUT_TYPES:
            return True
        # A select inside a form is one of that form's fields
        if tag == "select" and node.closest("form") is None:
            return True
        return node.has_attribute("data-action")

    def is_action_href(self, href: str) -> bool:
        """Absolute and root-relative hrefs are navigation, not actions."""
        return not href.lower().startswith(self.config.external_href_prefixes)

    @staticmethod
    def identity_of(node: ElementNode) -> str | None:
        """First non-empty identifying attribute of a node."""
        for name in IDENTITY_ATTRIBUTES:
            value = _attr(node, name)
            if value:
                return value
        return None

    @staticmethod
    def extract_form_fields(form: ElementNode) -> list[FormField]:
        """
        Collect referenceable fields under a form.

        Fields are keyed by id, falling back to name; fields with neither
        are dropped, and a repeated key (a radio group) is kept once.
        """
        fields: list[FormField] = []
        seen: set[str] = set()

        for node in form.iter_descendants():
            if node.tag_name not in FIELD_TAGS:
                continue
            raw_type = field_html_type(node)
            if node.tag_name == "input" and raw_type in NON_DATA_INPUT_TYPES:
                continue

            field_id = _attr(node, "id") or _attr(node, "name")
            if not field_id or field_id in seen:
                continue
            seen.add(field_id)

            fields.append(
                FormField(
                    id=field_id,
                    name=_attr(node, "name") or field_id,
                    type=raw_type,
                    required=node.has_attribute("required"),
                )
            )

        return fields

    def _label(self, node: ElementNode, element_type: ElementType, ordinal: int) -> str:
        limit = self.config.max_text_length
        # An input's visible text is its value
        raw = (node.get("value") or "") if node.tag_name == "input" else node.text
        text = " ".join(raw.split())
        if text:
            return text[:limit]

        aria_label = " ".join(_attr(node, "aria-label").split())
        if aria_label:
            return aria_label[:limit]

        return f"{element_type.value.capitalize()} {ordinal}"

    @staticmethod
    def _unique_id(candidate: str, used_ids: set[str]) -> str:
        unique = candidate
        suffix = 2
        while unique in used_ids:
            unique = f"{candidate}-{suffix}"
            suffix += 1
        used_ids.add(unique)
        return unique


def extract_elements(doc: DocumentModel, config: EngineConfig | None = None) -> list[DetectedElement]:
    return ElementExtractor(config).extract(doc)


def parse_interactive_elements(html: str, config: EngineConfig | None = None) -> list[DetectedElement]:
    """Parse HTML and extract its interactive elements; malformed input yields []."""
    return extract_elements(parse_document(html), config)


def find_element(doc: DocumentModel, element_id: str) -> ElementNode | None:
    """Resolve an element reference by id, data-action-id, then name."""
    if not element_id:
        return None
    for name in IDENTITY_ATTRIBUTES:
        node = doc.find_by_attribute(name, element_id)
        if node is not None:
            return node
    return None


def find_field(doc: DocumentModel, field_id: str) -> ElementNode | None:
    """Resolve a field reference by id, name, then data-field-id."""
    if not field_id:
        return None
    for name in ("id", "name", "data-field-id"):
        node = doc.find_by_attribute(name, field_id)
        if node is not None:
            return node
    return None


def validate_element_exists(html: str, element_id: str) -> bool:
    """
    Check whether an element reference resolves in the HTML.

    Synthesized ids ("button-2") have no attribute to match, so the
    extracted inventory is consulted as well.
    """
    doc = parse_document(html)
    if find_element(doc, element_id) is not None:
        return True
    return any(element.id == element_id for element in extract_elements(doc))


def get_field_html_type(html: str, field_id: str) -> str:
    """Raw HTML type of a field; unknown fields count as text."""
    node = find_field(parse_document(html), field_id)
    return field_html_type(node) if node is not None else "text"


def get_field_canonical_type(html: str, field_id: str) -> CanonicalType:
    return canonical_from_html(get_field_html_type(html, field_id))


def extract_template_placeholders(html: str) -> list[str]:
    """
    Find {{placeholder}} names in HTML.

    Args:
        html: HTML text

    Returns:
        Unique placeholder names in order of first appearance
    """
    if not isinstance(html, str):
        return []
    return list(dict.fromkeys(PLACEHOLDER_PATTERN.findall(html)))


def has_template_placeholders(html: str) -> bool:
    return isinstance(html, str) and PLACEHOLDER_PATTERN.search(html) is not None
