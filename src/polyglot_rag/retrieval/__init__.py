"""Document chunking and relevance retrieval."""

from .chunker import chunk
from .errors import EmptyDocument, NoRelevantContent
from .index import IndexSnapshot, index, query
from .models import Chunk, ChunkingConfig, PageText, RetrievalConfig, ScoredChunk
from .retriever import Retriever, retrieve, retrieve_scored
from .scorer import Scorer, TfIdfScorer
from .tokenizer import tokenize

__all__ = [
    "Chunk",
    "ChunkingConfig",
    "EmptyDocument",
    "IndexSnapshot",
    "NoRelevantContent",
    "PageText",
    "RetrievalConfig",
    "Retriever",
    "ScoredChunk",
    "Scorer",
    "TfIdfScorer",
    "chunk",
    "index",
    "query",
    "retrieve",
    "retrieve_scored",
    "tokenize",
]
