"""Rank chunks for a query and select the grounding passages."""
from __future__ import annotations

from typing import List, Optional, Sequence

from .models import Chunk, RetrievalConfig, ScoredChunk
from .scorer import Scorer, TfIdfScorer

_DEFAULT_SCORER = TfIdfScorer()


def _rank_key(item: ScoredChunk) -> tuple[float, int, int]:
    return (-item.score, item.chunk.page, item.chunk.id)


def retrieve_scored(
    query: str,
    chunks: Sequence[Chunk],
    config: Optional[RetrievalConfig] = None,
    *,
    scorer: Optional[Scorer] = None,
) -> List[ScoredChunk]:
    """Return the scored chunks that clear ``min_score``, best first.

    Chunks scoring exactly zero share no weighted vocabulary with the query
    and are never returned.
    """

    config = config or RetrievalConfig()
    if config.top_k == 0 or not chunks:
        return []

    scores = (scorer or _DEFAULT_SCORER).score(query, chunks)
    candidates: List[ScoredChunk] = []
    for chunk in chunks:
        score = scores.get(chunk.id, 0.0)
        if score > 0.0 and score >= config.min_score:
            candidates.append(ScoredChunk(chunk=chunk, score=score))
    candidates.sort(key=_rank_key)
    return candidates[: config.top_k]


def retrieve(
    query: str,
    chunks: Sequence[Chunk],
    config: Optional[RetrievalConfig] = None,
    *,
    scorer: Optional[Scorer] = None,
) -> List[Chunk]:
    """Return at most ``top_k`` chunks relevant to *query*, highest first."""

    return [item.chunk for item in retrieve_scored(query, chunks, config, scorer=scorer)]


class Retriever:
    """Bundles a scorer with retrieval settings."""

    def __init__(self, config: Optional[RetrievalConfig] = None, scorer: Optional[Scorer] = None) -> None:
        self.config = config or RetrievalConfig()
        self.scorer = scorer or TfIdfScorer()

    def retrieve(self, query: str, chunks: Sequence[Chunk], top_k: Optional[int] = None) -> List[ScoredChunk]:
        config = self.config
        if top_k is not None:
            config = RetrievalConfig(top_k=top_k, min_score=config.min_score)
        return retrieve_scored(query, chunks, config, scorer=self.scorer)


__all__ = ["Retriever", "retrieve", "retrieve_scored"]
