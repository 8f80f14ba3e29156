"""Extractors turning uploaded bytes into ordered page texts."""
from __future__ import annotations

import codecs
import io
import logging
from typing import List

from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from polyglot_rag.retrieval import PageText
from .errors import ExtractionError

LOGGER = logging.getLogger(__name__)


class PDFExtractor:
    """Extract one :class:`PageText` per physical PDF page."""

    def extract(self, data: bytes) -> List[PageText]:
        try:
            reader = PdfReader(io.BytesIO(data))
            if reader.is_encrypted:
                raise ExtractionError("Encrypted PDF documents are not supported")
            raw_pages = list(reader.pages)
        except (PdfReadError, ValueError, KeyError, TypeError) as error:
            raise ExtractionError("The PDF file could not be read", cause=error) from error

        pages: List[PageText] = []
        for index, page in enumerate(raw_pages, start=1):
            try:
                text = page.extract_text() or ""
            except Exception as error:  # pragma: no cover - depends on PDF internals
                LOGGER.warning("Failed to extract text from PDF page %s: %s", index, error)
                text = ""
            pages.append(PageText(page_number=index, content=text))
        return pages


class TextExtractor:
    """Extract text from plaintext documents as a single page.

    UTF-8 is tried first. UTF-16 is only accepted with a byte order mark;
    anything else is read as Windows-1252, then Latin-1.
    """

    _UTF16_BOMS = (codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)
    _FALLBACK_ENCODINGS = ("cp1252", "latin-1")

    def _candidate_encodings(self, data: bytes) -> List[str]:
        encodings = ["utf-8-sig"]
        if data.startswith(self._UTF16_BOMS):
            encodings.append("utf-16")
        encodings.extend(self._FALLBACK_ENCODINGS)
        return encodings

    def extract(self, data: bytes) -> List[PageText]:
        for encoding in self._candidate_encodings(data):
            try:
                text = data.decode(encoding)
            except UnicodeDecodeError:
                LOGGER.debug("Plain text upload is not valid %s", encoding)
                continue
            return [PageText(page_number=1, content=text)]
        raise ExtractionError("The text file could not be decoded")  # pragma: no cover - latin-1 accepts all bytes
