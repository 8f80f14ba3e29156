"""High level extraction entry point."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from polyglot_rag.retrieval import PageText
from .errors import ExtractionError
from .extractors import PDFExtractor, TextExtractor
from .format_detection import DocumentFormat, DocumentFormatDetector
from .language import LanguageDetector
from .models import ExtractedDocument
from .normalization import normalize_text

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ExtractionPipelineConfig:
    max_upload_bytes: int = 50 * 1024 * 1024
    detect_language: bool = True


class ExtractionPipeline:
    """Detects the format of an upload, extracts and normalises its pages."""

    def __init__(self, config: Optional[ExtractionPipelineConfig] = None) -> None:
        self.config = config or ExtractionPipelineConfig()
        self.pdf_extractor = PDFExtractor()
        self.text_extractor = TextExtractor()
        self.language_detector = LanguageDetector()

    def extract(self, file_bytes: bytes, file_name: str, mime_type: Optional[str] = None) -> ExtractedDocument:
        """Return the normalised pages of an uploaded file.

        Raises :class:`ExtractionError` (or its subclass
        :class:`UnsupportedFormatError`) when the upload cannot be read.
        """

        if len(file_bytes) > self.config.max_upload_bytes:
            raise ExtractionError(
                f"{file_name} exceeds the upload limit of {self.config.max_upload_bytes} bytes"
            )

        document_format = DocumentFormatDetector.detect(file_name, mime_type, file_bytes)
        LOGGER.info("Extracting %s as %s", file_name, document_format.value)

        if document_format is DocumentFormat.PDF:
            raw_pages = self.pdf_extractor.extract(file_bytes)
        else:
            raw_pages = self.text_extractor.extract(file_bytes)

        pages: List[PageText] = [
            PageText(page_number=page.page_number, content=normalize_text(page.content)) for page in raw_pages
        ]
        language = None
        if self.config.detect_language:
            language = self.language_detector.detect("\n".join(page.content for page in pages))
        LOGGER.debug("Language detected for %s: %s", file_name, language)

        return ExtractedDocument(file_name=file_name, pages=pages, language=language)
