"""Utilities for detecting the format of uploaded documents."""
from __future__ import annotations

import mimetypes
from enum import Enum
from pathlib import Path
from typing import Optional

from .errors import UnsupportedFormatError


class DocumentFormat(str, Enum):
    """Supported document formats."""

    PDF = "pdf"
    TXT = "txt"


class DocumentFormatDetector:
    """Detects the document format based on file name, MIME type and magic bytes."""

    _MIME_MAP = {
        "application/pdf": DocumentFormat.PDF,
        "text/plain": DocumentFormat.TXT,
    }

    @classmethod
    def detect(cls, file_name: str, mime_type: Optional[str] = None, data: bytes | None = None) -> DocumentFormat:
        """Return the detected document format.

        PDF magic bytes win over any declared type; otherwise an explicit
        MIME type is considered first, then ``mimetypes.guess_type`` and
        finally the file suffix.
        """

        if data is not None and data.lstrip()[:5] == b"%PDF-":
            return DocumentFormat.PDF

        if mime_type and mime_type in cls._MIME_MAP:
            return cls._MIME_MAP[mime_type]

        guessed_type, _ = mimetypes.guess_type(file_name)
        if guessed_type and guessed_type in cls._MIME_MAP:
            return cls._MIME_MAP[guessed_type]

        suffix = Path(file_name).suffix.lower().lstrip(".")
        try:
            return DocumentFormat(suffix)
        except ValueError as exc:
            raise UnsupportedFormatError(f"Unsupported file format: {file_name or '<unnamed>'}") from exc
