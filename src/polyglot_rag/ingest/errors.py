"""Errors raised by the extraction collaborator before chunking starts."""
from __future__ import annotations


class ExtractionError(RuntimeError):
    """Raised when an uploaded document cannot be read."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.__cause__ = cause


class UnsupportedFormatError(ExtractionError):
    """Raised for uploads that are neither PDF nor plain text."""
