"""
HTML document model.

Parses raw HTML into a small, library-independent element tree. The HTML
library itself sits behind the ``HTMLBackend`` base class so the extractor
and validation engine never touch it directly and run the same way
headless or embedded.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterator

import structlog
from bs4 import BeautifulSoup, Tag

logger = structlog.get_logger(__name__)


@dataclass(eq=False)
class ElementNode:
    """A single element in a parsed document."""

    tag_name: str
    """Lower-case tag name."""

    attributes: dict[str, str] = field(default_factory=dict)
    """Attribute map; boolean attributes carry an empty string."""

    text: str = ""
    """Concatenated text content of the element and its descendants."""

    children: list[ElementNode] = field(default_factory=list, repr=False)
    """Child elements in document order."""

    parent: ElementNode | None = field(default=None, repr=False)
    """Parent element, None for top-level elements."""

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.attributes.get(name, default)

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def iter_descendants(self) -> Iterator[ElementNode]:
        """Yield all descendants in document order."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def iter_ancestors(self) -> Iterator[ElementNode]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def closest(self, *tag_names: str) -> ElementNode | None:
        """Return the nearest ancestor with one of the given tag names."""
        for ancestor in self.iter_ancestors():
            if ancestor.tag_name in tag_names:
                return ancestor
        return None


@dataclass
class DocumentModel:
    """Parsed document: an ordered forest of top-level elements."""

    roots: list[ElementNode] = field(default_factory=list)

    @classmethod
    def empty(cls) -> DocumentModel:
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.roots

    def iter_elements(self) -> Iterator[ElementNode]:
        """Yield every element in document order."""
        for root in self.roots:
            yield root
            yield from root.iter_descendants()

    def find_all(self, *tag_names: str) -> list[ElementNode]:
        return [node for node in self.iter_elements() if node.tag_name in tag_names]

    def find_by_attribute(self, name: str, value: str) -> ElementNode | None:
        """Return the first element whose attribute ``name`` equals ``value``."""
        for node in self.iter_elements():
            if node.attributes.get(name) == value:
                return node
        return None

    def find_by_id(self, element_id: str) -> ElementNode | None:
        return self.find_by_attribute("id", element_id)


class HTMLBackend(ABC):
    """
    Abstract base class for HTML parsing backends.

    parse() may raise on input it cannot handle; parse_document() turns
    any failure into an empty document.
    """

    name: str

    @abstractmethod
    def parse(self, html: str) -> DocumentModel:
        """Parse HTML text into a DocumentModel."""
        pass


class BeautifulSoupBackend(HTMLBackend):
    """HTML backend built on BeautifulSoup's tolerant tree builders."""

    name = "beautifulsoup"

    def __init__(self, features: str = "html.parser") -> None:
        self.features = features

    def parse(self, html: str) -> DocumentModel:
        soup = BeautifulSoup(html, self.features)
        document = DocumentModel()

        # Iterative conversion; deeply nested markup must not hit the recursion limit
        stack: list[tuple[Tag, ElementNode | None]] = [
            (tag, None) for tag in reversed(soup.find_all(True, recursive=False))
        ]
        while stack:
            tag, parent = stack.pop()
            node = ElementNode(
                tag_name=tag.name.lower(),
                attributes=self._convert_attributes(tag),
                text=tag.get_text(),
                parent=parent,
            )
            if parent is None:
                document.roots.append(node)
            else:
                parent.children.append(node)
            stack.extend((child, node) for child in reversed(tag.find_all(True, recursive=False)))

        return document

    @staticmethod
    def _convert_attributes(tag: Tag) -> dict[str, str]:
        attributes: dict[str, str] = {}
        for name, value in tag.attrs.items():
            if isinstance(value, (list, tuple)):
                # Multi-valued attributes such as class
                value = " ".join(value)
            attributes[name.lower()] = "" if value is None else str(value)
        return attributes


_default_backend = BeautifulSoupBackend()


def get_default_backend() -> HTMLBackend:
    return _default_backend


def parse_document(html: str, backend: HTMLBackend | None = None) -> DocumentModel:
    """
    Parse HTML into a DocumentModel without ever raising.

    Args:
        html: Raw HTML text of arbitrary well-formedness
        backend: HTML backend to use (default: BeautifulSoup)

    Returns:
        The parsed document, or an empty document when the input is empty
        or the backend fails
    """
    if not isinstance(html, str) or not html.strip():
        return DocumentModel.empty()

    backend = backend or get_default_backend()
    try:
        return backend.parse(html)
    except Exception as e:
        logger.warning("html_parse_failed", backend=backend.name, error=str(e))
        return DocumentModel.empty()
