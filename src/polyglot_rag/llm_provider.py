"""Answer generation backends for retrieved passages."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Sequence

from openai import APITimeoutError, AsyncOpenAI, OpenAIError

from polyglot_rag.config import LLMSettings
from polyglot_rag.prompt_builder import (
    EMPTY_ANSWER_MESSAGE,
    NO_DATA_MESSAGE,
    ChatTurn,
    Passage,
    build_messages,
)
from polyglot_rag.telemetry import emit_exception

LOGGER = logging.getLogger(__name__)

_STUB_SAMPLE_PASSAGES = 3
_STUB_SAMPLE_CHARS = 800


@dataclass(slots=True)
class LLMStatus:
    """Structured status information about the configured LLM backend."""

    model_loaded: bool
    model_name: str
    error: Optional[str] = None


class LLMError(RuntimeError):
    """Base exception raised for LLM provider issues."""


class LLMGenerationError(LLMError):
    """Raised when text generation fails unexpectedly."""


class LLMTimeoutError(LLMGenerationError):
    """Raised when the generator does not answer within the caller's timeout."""


class LLM:
    """Common interface exposed by answer generators."""

    async def generate(
        self,
        question: str,
        passages: Sequence[Passage],
        history: Sequence[ChatTurn] = (),
    ) -> str:
        """Answer *question* using only *passages* as grounding."""

        raise NotImplementedError

    @property
    def model_loaded(self) -> bool:
        """Return ``True`` when a real generator is configured."""

        return False

    @property
    def model_name(self) -> str:
        return "stub"

    @property
    def last_error(self) -> Optional[str]:
        return None

    def status(self) -> LLMStatus:
        """Return structured diagnostic information for health checks."""

        return LLMStatus(
            model_loaded=self.model_loaded,
            model_name=self.model_name,
            error=self.last_error,
        )


class LLMStub(LLM):
    """Extractive fallback used when no API key is configured.

    The answer quotes the leading passages verbatim and lists their pages.
    """

    def __init__(self, *, reason: str | None = None) -> None:
        self._reason = reason or "No API key configured; answers are synthesised from passages."

    async def generate(
        self,
        question: str,
        passages: Sequence[Passage],
        history: Sequence[ChatTurn] = (),
    ) -> str:
        if not passages:
            return NO_DATA_MESSAGE
        sample = "\n\n".join(
            f"Page {passage.page}: {passage.text[:_STUB_SAMPLE_CHARS]}"
            for passage in passages[:_STUB_SAMPLE_PASSAGES]
        )
        pages = ", ".join(str(page) for page in dict.fromkeys(passage.page for passage in passages))
        return (
            f"Based on the document (pages {pages}):\n\n{sample}\n\n"
            "(Answer synthesized from indexed document segments.)"
        )

    @property
    def last_error(self) -> Optional[str]:
        return self._reason


class GeminiLLM(LLM):
    """Gemini chat completions through the OpenAI-compatible endpoint.

    The client never retries on its own; retry policy belongs to callers.
    """

    def __init__(self, settings: LLMSettings, client: AsyncOpenAI | None = None) -> None:
        self._settings = settings
        self._client = client or AsyncOpenAI(
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
            max_retries=0,
        )

    async def generate(
        self,
        question: str,
        passages: Sequence[Passage],
        history: Sequence[ChatTurn] = (),
    ) -> str:
        messages = build_messages(
            question,
            passages,
            history,
            history_turns=self._settings.history_turns,
        )
        try:
            response = await self._client.chat.completions.create(
                model=self._settings.model,
                messages=messages,
                temperature=self._settings.temperature,
            )
        except APITimeoutError as error:
            raise LLMTimeoutError("The language model did not respond in time") from error
        except OpenAIError as error:
            emit_exception(module=f"{__name__}.gemini", error=error)
            raise LLMGenerationError(f"Language model request failed: {error}") from error

        content = response.choices[0].message.content if response.choices else None
        return (content or "").strip() or EMPTY_ANSWER_MESSAGE

    @property
    def model_loaded(self) -> bool:
        return True

    @property
    def model_name(self) -> str:
        return self._settings.model


_LLM_LOCK = threading.Lock()
_LLM_INSTANCE: Optional[LLM] = None


def create_llm(settings: LLMSettings) -> LLM:
    if not settings.api_key:
        LOGGER.warning("No Gemini API key configured; using the extractive stub generator")
        return LLMStub()
    LOGGER.info("Using Gemini model %s", settings.model)
    return GeminiLLM(settings)


def get_llm(settings: LLMSettings | None = None) -> LLM:
    """Return the process-wide generator, creating it on first use."""

    global _LLM_INSTANCE
    with _LLM_LOCK:
        if _LLM_INSTANCE is None:
            _LLM_INSTANCE = create_llm(settings or LLMSettings.from_env())
        return _LLM_INSTANCE


def get_llm_status() -> LLMStatus:
    return get_llm().status()


def reset_llm() -> None:
    """Forget the cached generator so the next call re-reads the environment."""

    global _LLM_INSTANCE
    with _LLM_LOCK:
        _LLM_INSTANCE = None


__all__ = [
    "GeminiLLM",
    "LLM",
    "LLMError",
    "LLMGenerationError",
    "LLMStatus",
    "LLMStub",
    "LLMTimeoutError",
    "create_llm",
    "get_llm",
    "get_llm_status",
    "reset_llm",
]
