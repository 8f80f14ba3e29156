"""Extraction collaborator producing page texts from uploads."""

from .errors import ExtractionError, UnsupportedFormatError
from .models import ExtractedDocument
from .pipeline import ExtractionPipeline, ExtractionPipelineConfig

__all__ = [
    "ExtractedDocument",
    "ExtractionError",
    "ExtractionPipeline",
    "ExtractionPipelineConfig",
    "UnsupportedFormatError",
]
