"""Split page texts into overlapping, page-tagged chunks."""
from __future__ import annotations

import logging
import unicodedata
from typing import Iterable, List, Optional, Tuple

from .errors import EmptyDocument
from .models import Chunk, ChunkingConfig, PageText

LOGGER = logging.getLogger(__name__)

Span = Tuple[int, int]


def _is_boundary(char: str) -> bool:
    return char.isspace() or unicodedata.category(char).startswith("P")


def _find_split(text: str, start: int, end: int, config: ChunkingConfig) -> int:
    """Move *end* back to the nearest boundary within the lookback window.

    The split never falls at or before ``start + overlap`` so the next
    window always starts after the current one.
    """

    if _is_boundary(text[end - 1]) or _is_boundary(text[end]):
        return end
    lower = max(start + config.overlap + 1, start + config.min_size, end - config.lookback)
    for position in range(end - 1, lower - 1, -1):
        if _is_boundary(text[position - 1]):
            return position
    return end


def _absorb_tail(text: str, spans: List[Span], config: ChunkingConfig) -> List[Span]:
    """Fold a trailing fragment shorter than ``min_size`` into a full chunk."""

    if len(spans) < 2:
        return spans
    tail_start, tail_end = spans[-1]
    if tail_end - tail_start >= config.min_size:
        return spans

    previous_start, _ = spans[-2]
    if tail_end - previous_start <= config.target_size:
        return spans[:-2] + [(previous_start, tail_end)]

    # Extending the previous chunk would exceed target_size; re-anchor the
    # tail so that it ends the page with a full-size window instead.
    new_start = tail_end - config.target_size
    latest_start = min(new_start + config.lookback, tail_end - config.min_size)
    for position in range(new_start, latest_start + 1):
        if _is_boundary(text[position - 1]):
            new_start = position
            break
    return spans[:-1] + [(new_start, tail_end)]


def _page_spans(text: str, config: ChunkingConfig) -> List[Span]:
    length = len(text)
    spans: List[Span] = []
    start = 0
    while True:
        end = min(start + config.target_size, length)
        if end < length:
            end = _find_split(text, start, end, config)
        spans.append((start, end))
        if end >= length:
            break
        next_start = end - config.overlap
        start = next_start if next_start > start else end
    return _absorb_tail(text, spans, config)


def chunk(pages: Iterable[PageText], config: Optional[ChunkingConfig] = None) -> List[Chunk]:
    """Chunk *pages* in reading order.

    Raises :class:`EmptyDocument` when no page contains non-whitespace text.
    """

    config = config or ChunkingConfig()
    chunks: List[Chunk] = []
    page_count = 0
    for page in pages:
        page_count += 1
        text = page.content
        if not text.strip():
            LOGGER.debug("Skipping page %s without text", page.page_number)
            continue
        for start, end in _page_spans(text, config):
            chunks.append(
                Chunk(id=len(chunks), page=page.page_number, text=text[start:end], start=start, end=end)
            )

    if not chunks:
        raise EmptyDocument()

    LOGGER.debug("Chunked %s pages into %s chunks", page_count, len(chunks))
    return chunks


__all__ = ["chunk"]
