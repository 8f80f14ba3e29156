"""Entry points of the retrieval core: build an index, query it."""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .chunker import chunk
from .models import Chunk, ChunkingConfig, PageText, RetrievalConfig
from .retriever import retrieve
from .scorer import Scorer

LOGGER = logging.getLogger(__name__)

_VERSIONS = itertools.count(1)


@dataclass(frozen=True, slots=True)
class IndexSnapshot:
    """Immutable chunk set of one document, stamped with a version.

    Versions grow monotonically across the process so that a reader can
    tell which upload produced the snapshot it holds.
    """

    version: int
    chunks: Tuple[Chunk, ...]
    page_count: int

    def __len__(self) -> int:
        return len(self.chunks)

    @property
    def pages(self) -> List[int]:
        return sorted({item.page for item in self.chunks})


def index(pages: Iterable[PageText], config: Optional[ChunkingConfig] = None) -> IndexSnapshot:
    """Chunk *pages* into a new snapshot or raise :class:`EmptyDocument`."""

    page_list = list(pages)
    chunks = tuple(chunk(page_list, config))
    snapshot = IndexSnapshot(version=next(_VERSIONS), chunks=chunks, page_count=len(page_list))
    LOGGER.info("Indexed %s pages into %s chunks (version %s)", len(page_list), len(chunks), snapshot.version)
    return snapshot


def query(
    text: str,
    snapshot: IndexSnapshot,
    config: Optional[RetrievalConfig] = None,
    *,
    scorer: Optional[Scorer] = None,
) -> List[Chunk]:
    """Return the chunks of *snapshot* relevant to *text*, best first."""

    return retrieve(text, snapshot.chunks, config, scorer=scorer)


__all__ = ["IndexSnapshot", "index", "query"]
