"""
Exception types raised by toolbind.

Engine operations collect diagnostics instead of raising; these
exceptions are reserved for caller errors such as unreadable input files.
"""

from __future__ import annotations


class ToolbindError(Exception):
    """Base class for toolbind errors."""


class InputLoadError(ToolbindError):
    """Raised when an input file cannot be read or does not hold valid records."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load {path}: {reason}")
