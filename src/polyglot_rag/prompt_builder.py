"""Compose the grounded instruction and chat messages for the generator."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Sequence

from polyglot_rag.retrieval import Chunk

_SYSTEM_PROMPT_PATH = Path(__file__).resolve().parent / "prompts" / "system.txt"

NO_DATA_MESSAGE = "I do not have enough information to answer this based on the provided documents."
EMPTY_ANSWER_MESSAGE = "I'm sorry, I couldn't generate a response."


def _load_template(path: Path) -> str:
    """Read and trim the contents of a template file."""
    return path.read_text(encoding="utf-8").strip()


_SYSTEM_TEMPLATE = _load_template(_SYSTEM_PROMPT_PATH)


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True, slots=True)
class Passage:
    """A grounding passage handed to the answer generator."""

    page: int
    text: str

    @classmethod
    def from_chunk(cls, chunk: Chunk) -> "Passage":
        return cls(page=chunk.page, text=chunk.text)


@dataclass(frozen=True, slots=True)
class ChatTurn:
    role: MessageRole
    content: str


def format_context_block(passages: Iterable[Passage]) -> str:
    sections = [f"[Page {passage.page}]: {passage.text}" for passage in passages if passage.text.strip()]
    return "\n\n".join(sections)


def build_system_instruction(passages: Iterable[Passage]) -> str:
    """Fill the fixed policy template with the grounding passages."""

    return _SYSTEM_TEMPLATE.format(no_data_message=NO_DATA_MESSAGE, context=format_context_block(passages))


def select_history(history: Sequence[ChatTurn], turns: int) -> List[ChatTurn]:
    """Keep the last *turns* user/assistant messages with non-empty content."""

    if turns <= 0:
        return []
    usable = [turn for turn in history if turn.role is not MessageRole.SYSTEM and turn.content.strip()]
    return usable[-turns:]


def build_messages(
    question: str,
    passages: Sequence[Passage],
    history: Sequence[ChatTurn] = (),
    *,
    history_turns: int = 6,
) -> List[Dict[str, str]]:
    """Return chat-completion messages: instruction, recent history, question."""

    if question is None:
        raise ValueError("question must not be None")

    messages: List[Dict[str, str]] = [
        {"role": MessageRole.SYSTEM.value, "content": build_system_instruction(passages)}
    ]
    for turn in select_history(history, history_turns):
        messages.append({"role": turn.role.value, "content": turn.content})
    messages.append({"role": MessageRole.USER.value, "content": question.strip()})
    return messages


__all__ = [
    "ChatTurn",
    "EMPTY_ANSWER_MESSAGE",
    "MessageRole",
    "NO_DATA_MESSAGE",
    "Passage",
    "build_messages",
    "build_system_instruction",
    "format_context_block",
    "select_history",
]
