"""Structured parsing/validation errors for the bracket extractor."""

from __future__ import annotations
from typing import Any


class ParsingError(Exception):
    """Base class for parsing related issues."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}


class MissingSectionError(ParsingError):
    """Raised when an expected element (team row, seed, name) is absent."""


class ValueExtractionError(ParsingError):
    """Raised when a critical value (id, seed, date) cannot be extracted."""
