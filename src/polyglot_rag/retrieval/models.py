"""Data models shared by the chunking and retrieval core."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PageText:
    """Text extracted from a single physical page, in reading order."""

    page_number: int
    content: str

    def __post_init__(self) -> None:
        if self.page_number < 1:
            raise ValueError("page_number must be a positive integer")


@dataclass(frozen=True, slots=True)
class Chunk:
    """A bounded, page-tagged slice of document text.

    ``start`` and ``end`` are offsets into the content of ``page``.
    """

    id: int
    page: int
    text: str
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class ScoredChunk:
    """A chunk paired with its relevance score for a single query."""

    chunk: Chunk
    score: float


@dataclass(frozen=True, slots=True)
class ChunkingConfig:
    target_size: int = 1000
    overlap: int = 200
    min_size: int = 100
    boundary_window: int | None = None

    def __post_init__(self) -> None:
        if self.target_size <= 0:
            raise ValueError("target_size must be a positive integer")
        if not 0 <= self.overlap < self.target_size:
            raise ValueError("overlap must be non-negative and smaller than target_size")
        if not 0 <= self.min_size <= self.target_size:
            raise ValueError("min_size must be between 0 and target_size")
        if self.boundary_window is not None and self.boundary_window < 0:
            raise ValueError("boundary_window must be a non-negative integer")

    @property
    def lookback(self) -> int:
        if self.boundary_window is not None:
            return self.boundary_window
        return max(1, self.target_size // 4)


@dataclass(frozen=True, slots=True)
class RetrievalConfig:
    top_k: int = 5
    min_score: float = 0.05

    def __post_init__(self) -> None:
        if self.top_k < 0:
            raise ValueError("top_k must be a non-negative integer")
        if not 0.0 <= self.min_score <= 1.0:
            raise ValueError("min_score must be within [0, 1]")
