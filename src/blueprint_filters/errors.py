"""
Exceptions raised by blueprint-filters.

Evaluation and compilation never raise for user-entered data: incomplete
or unconvertible operands degrade to "no restriction". Exceptions are
reserved for malformed serialized input and programming errors.
"""

from __future__ import annotations


class FilterError(Exception):
    """Base class for blueprint-filters errors."""


class FilterFormatError(FilterError, ValueError):
    """Serialized filter or field catalog input could not be parsed."""

    def __init__(self, message: str, *, path: str | None = None):
        self.path = path
        if path:
            message = f"{message} (at {path})"
        super().__init__(message)
