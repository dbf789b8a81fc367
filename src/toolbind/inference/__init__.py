"""
Tool inference from HTML structure.

Provides:
- Ordered keyword rules for forms, buttons and data-bound elements
- The inference engine producing tool signatures and default mappings
"""

from toolbind.inference.engine import (
    BUTTON_CONFIDENCE,
    DATA_CONFIDENCE,
    FORM_CONFIDENCE,
    ToolInferenceEngine,
    analyze_for_tools,
)
from toolbind.inference.rules import (
    BUTTON_RULES,
    DATA_RULES,
    FORM_RULES,
    ButtonContext,
    DataContext,
    FormContext,
    InferenceRule,
    PurposeInference,
    first_match,
    tokenize,
)

__all__ = [
    # Engine
    "ToolInferenceEngine",
    "analyze_for_tools",
    "FORM_CONFIDENCE",
    "BUTTON_CONFIDENCE",
    "DATA_CONFIDENCE",
    # Rules
    "InferenceRule",
    "PurposeInference",
    "FormContext",
    "ButtonContext",
    "DataContext",
    "FORM_RULES",
    "BUTTON_RULES",
    "DATA_RULES",
    "first_match",
    "tokenize",
]
