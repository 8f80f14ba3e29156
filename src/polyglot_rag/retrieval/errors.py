"""Error taxonomy of the retrieval core."""
from __future__ import annotations


class EmptyDocument(ValueError):
    """Raised when none of the pages contains any non-whitespace text."""

    def __init__(self, message: str = "The document does not contain any extractable text.") -> None:
        super().__init__(message)


class NoRelevantContent(LookupError):
    """Signals that no chunk cleared the relevance floor for a query.

    This is a normal terminal outcome: callers answer with the
    insufficient-information message instead of calling the generator.
    """

    def __init__(self, query: str) -> None:
        super().__init__(f"No passage is relevant enough for query: {query[:120]!r}")
        self.query = query
