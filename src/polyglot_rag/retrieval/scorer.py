"""Term-weighted vector similarity between a query and a chunk set."""
from __future__ import annotations

import logging
import math
import threading
from collections import Counter, OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Protocol, Sequence, Tuple, runtime_checkable

from .models import Chunk
from .tokenizer import tokenize

TermVector = Dict[str, float]
Tokenizer = Callable[[str], List[str]]

LOGGER = logging.getLogger(__name__)


@runtime_checkable
class Scorer(Protocol):
    """Contract shared by relevance backends consumed by the retriever."""

    def score(self, query: str, chunks: Sequence[Chunk]) -> Dict[int, float]:
        """Return a relevance score in ``[0, 1]`` for every chunk id."""
        ...


@dataclass(frozen=True, slots=True)
class CorpusStatistics:
    """Document frequencies and weighted vectors for one chunk set.

    When inverse document frequency erases every weight (a single chunk, or
    vocabulary shared by all chunks) the vectors hold raw term frequencies
    and ``weighted`` is ``False``.
    """

    chunk_count: int
    document_frequency: Mapping[str, int]
    vectors: Mapping[int, TermVector]
    norms: Mapping[int, float]
    weighted: bool = True

    def idf(self, token: str) -> float:
        if not self.weighted:
            return 1.0
        return _smoothed_idf(self.chunk_count, self.document_frequency.get(token, 0))

    def weigh(self, tokens: Sequence[str]) -> TermVector:
        """Weight *tokens* as a one-off document; unknown tokens are dropped."""

        counts = Counter(token for token in tokens if token in self.document_frequency)
        return {token: frequency * self.idf(token) for token, frequency in counts.items()}


def _smoothed_idf(chunk_count: int, frequency: int) -> float:
    return math.log((1 + chunk_count) / (1 + frequency))


def _norm(vector: Mapping[str, float]) -> float:
    return math.sqrt(sum(weight * weight for weight in vector.values()))


def cosine_similarity(
    left: Mapping[str, float],
    right: Mapping[str, float],
    *,
    left_norm: float | None = None,
    right_norm: float | None = None,
) -> float:
    """Cosine similarity of two sparse vectors, ``0.0`` when either is empty."""

    left_norm = _norm(left) if left_norm is None else left_norm
    right_norm = _norm(right) if right_norm is None else right_norm
    if left_norm == 0.0 or right_norm == 0.0:
        return 0.0
    if len(left) > len(right):
        left, right = right, left
    dot = sum(weight * right.get(token, 0.0) for token, weight in left.items())
    return min(1.0, max(0.0, dot / (left_norm * right_norm)))


def _vectorise(
    term_counts: Sequence[Tuple[int, Counter]], idf: Mapping[str, float] | None
) -> Tuple[Dict[int, TermVector], Dict[int, float]]:
    vectors: Dict[int, TermVector] = {}
    norms: Dict[int, float] = {}
    for chunk_id, counts in term_counts:
        if idf is None:
            vector = {token: float(frequency) for token, frequency in counts.items()}
        else:
            vector = {token: frequency * idf[token] for token, frequency in counts.items()}
        vectors[chunk_id] = vector
        norms[chunk_id] = _norm(vector)
    return vectors, norms


def build_statistics(chunks: Sequence[Chunk], tokenizer: Tokenizer = tokenize) -> CorpusStatistics:
    """Tokenise *chunks* once and derive their TF-IDF vectors."""

    term_counts: List[Tuple[int, Counter]] = [(chunk.id, Counter(tokenizer(chunk.text))) for chunk in chunks]
    document_frequency: Counter = Counter()
    for _, counts in term_counts:
        document_frequency.update(counts.keys())

    chunk_count = len(chunks)
    idf = {token: _smoothed_idf(chunk_count, frequency) for token, frequency in document_frequency.items()}
    vectors, norms = _vectorise(term_counts, idf)
    weighted = any(norms.values()) or not document_frequency
    if not weighted:
        LOGGER.debug("No token separates the %s chunks; scoring with term frequencies", chunk_count)
        vectors, norms = _vectorise(term_counts, None)

    return CorpusStatistics(
        chunk_count=chunk_count,
        document_frequency=dict(document_frequency),
        vectors=vectors,
        norms=norms,
        weighted=weighted,
    )


class TfIdfScorer:
    """Smoothed TF-IDF weighting compared with cosine similarity.

    Statistics are cached per chunk set, so repeated queries against the
    same immutable snapshot tokenise the corpus only once. Owners of a
    snapshot call :meth:`discard` once it is replaced.
    """

    def __init__(self, tokenizer: Tokenizer = tokenize, cache_size: int = 8) -> None:
        self._tokenizer = tokenizer
        self._cache_size = cache_size
        self._cache: "OrderedDict[Tuple[Chunk, ...], CorpusStatistics]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def statistics(self, chunks: Sequence[Chunk]) -> CorpusStatistics:
        key = tuple(chunks)
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self._cache.move_to_end(key)
                return cached

        stats = build_statistics(key, self._tokenizer)
        with self._lock:
            self._cache[key] = stats
            while len(self._cache) > self._cache_size:
                self._cache.popitem(last=False)
        return stats

    def discard(self, chunks: Sequence[Chunk]) -> None:
        """Drop cached statistics of a chunk set that is no longer served."""

        with self._lock:
            self._cache.pop(tuple(chunks), None)

    def score(self, query: str, chunks: Sequence[Chunk]) -> Dict[int, float]:
        if not chunks:
            return {}

        stats = self.statistics(chunks)
        query_vector = stats.weigh(self._tokenizer(query))
        query_norm = _norm(query_vector)
        return {
            chunk.id: cosine_similarity(
                query_vector,
                stats.vectors[chunk.id],
                left_norm=query_norm,
                right_norm=stats.norms[chunk.id],
            )
            for chunk in chunks
        }


__all__ = [
    "CorpusStatistics",
    "Scorer",
    "TfIdfScorer",
    "build_statistics",
    "cosine_similarity",
]
