"""
toolbind - Bind interactive HTML elements to backend tools.

Extracts interactive elements from HTML fragments, models element-to-tool
action mappings, validates those mappings against the HTML and the tools'
parameter schemas, and infers candidate tool signatures from markup.
"""

__version__ = "1.0.0"
__author__ = "Olib AI"

from toolbind.canonical import CanonicalType, canonical_from_html, canonical_from_schema
from toolbind.config import EngineConfig, get_config
from toolbind.document import DocumentModel, ElementNode, HTMLBackend, parse_document
from toolbind.errors import InputLoadError, ToolbindError
from toolbind.extractor import (
    ElementExtractor,
    extract_elements,
    extract_template_placeholders,
    get_field_canonical_type,
    has_template_placeholders,
    parse_interactive_elements,
    validate_element_exists,
)
from toolbind.inference import ToolInferenceEngine, analyze_for_tools
from toolbind.models import (
    ActionMapping,
    AnalysisResult,
    DetectedElement,
    ElementType,
    FormField,
    ImplementationType,
    InputSchema,
    ParameterSource,
    ParameterSourceType,
    ResponseHandler,
    ToolInference,
    ToolParameter,
    ToolSchema,
    TypeMismatch,
    ValidationStatus,
)
from toolbind.scheduler import Debouncer, ScheduledCall
from toolbind.tools import (
    ToolValidationResult,
    ToolValidationStatus,
    format_tool_name,
    parse_tool_name,
    validate_tool_exists,
    validate_tool_payload,
)
from toolbind.validation import (
    ValidationEngine,
    validate_action_mappings,
    validate_action_mappings_debounced,
)

__all__ = [
    "__version__",
    "ActionMapping",
    "AnalysisResult",
    "CanonicalType",
    "Debouncer",
    "DetectedElement",
    "DocumentModel",
    "ElementExtractor",
    "ElementNode",
    "ElementType",
    "EngineConfig",
    "FormField",
    "HTMLBackend",
    "ImplementationType",
    "InputLoadError",
    "InputSchema",
    "ParameterSource",
    "ParameterSourceType",
    "ResponseHandler",
    "ScheduledCall",
    "ToolInference",
    "ToolInferenceEngine",
    "ToolParameter",
    "ToolSchema",
    "ToolValidationResult",
    "ToolValidationStatus",
    "ToolbindError",
    "TypeMismatch",
    "ValidationEngine",
    "ValidationStatus",
    "analyze_for_tools",
    "canonical_from_html",
    "canonical_from_schema",
    "extract_elements",
    "extract_template_placeholders",
    "format_tool_name",
    "get_config",
    "get_field_canonical_type",
    "has_template_placeholders",
    "parse_document",
    "parse_interactive_elements",
    "parse_tool_name",
    "validate_action_mappings",
    "validate_action_mappings_debounced",
    "validate_element_exists",
    "validate_tool_exists",
    "validate_tool_payload",
]
