"""In-memory session registry holding the active index of each chat."""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

from polyglot_rag.retrieval import IndexSnapshot


class SessionNotFoundError(LookupError):
    """Raised when a session has no indexed document."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"No document has been indexed for session {session_id!r}")
        self.session_id = session_id


@dataclass(frozen=True, slots=True)
class SessionState:
    """The document currently active in a session."""

    session_id: str
    file_name: str
    snapshot: IndexSnapshot
    language: Optional[str] = None
    indexed_at: float = field(default_factory=time.time)


class SessionStore:
    """Single-writer registry of immutable session states.

    Writers swap a fully built :class:`SessionState` in one step; readers
    take a reference and keep using it even if a newer upload replaces it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._states: Dict[str, SessionState] = {}

    def replace(self, state: SessionState) -> Optional[SessionState]:
        """Install *state* and return the one it replaced, if any."""

        with self._lock:
            previous = self._states.get(state.session_id)
            self._states[state.session_id] = state
        return previous

    def get(self, session_id: str) -> Optional[SessionState]:
        with self._lock:
            return self._states.get(session_id)

    def require(self, session_id: str) -> SessionState:
        state = self.get(session_id)
        if state is None:
            raise SessionNotFoundError(session_id)
        return state

    def pop(self, session_id: str) -> Optional[SessionState]:
        """Remove and return the session's state, if any."""

        with self._lock:
            return self._states.pop(session_id, None)

    def clear(self, session_id: str) -> bool:
        """Drop the session's document; returns ``False`` when nothing was stored."""

        return self.pop(session_id) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)


__all__ = ["SessionNotFoundError", "SessionState", "SessionStore"]
