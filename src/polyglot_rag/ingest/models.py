"""Data models used by the extraction pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from polyglot_rag.retrieval import PageText


@dataclass(slots=True)
class ExtractedDocument:
    """Pages extracted from an upload, ready for indexing."""

    file_name: str
    pages: List[PageText] = field(default_factory=list)
    language: Optional[str] = None

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def char_count(self) -> int:
        return sum(len(page.content) for page in self.pages)
