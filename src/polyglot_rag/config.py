"""Environment-driven settings for the service."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from polyglot_rag.retrieval import ChunkingConfig, RetrievalConfig

LOGGER = logging.getLogger(__name__)

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
API_KEY_ENV_KEYS: Tuple[str, ...] = ("API_KEY", "GEMINI_API_KEY", "GEMINI_APIKEY")


def _int_from_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        LOGGER.warning("Invalid integer for %s: %s; using default %s", name, value, default)
        return default


def _float_from_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        LOGGER.warning("Invalid float for %s: %s; using default %s", name, value, default)
        return default


def _list_from_env(name: str, default: List[str]) -> List[str]:
    value = os.getenv(name)
    if value is None:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def resolve_api_key() -> Optional[str]:
    for key in API_KEY_ENV_KEYS:
        value = os.getenv(key)
        if value and value.strip():
            return value.strip()
    return None


@dataclass(slots=True)
class LLMSettings:
    api_key: Optional[str] = None
    model: str = "gemini-3-pro-preview"
    base_url: str = GEMINI_OPENAI_BASE_URL
    temperature: float = 0.1
    timeout_seconds: float = 60.0
    history_turns: int = 6

    @classmethod
    def from_env(cls) -> "LLMSettings":
        defaults = cls()
        return cls(
            api_key=resolve_api_key(),
            model=os.getenv("LLM_MODEL", defaults.model),
            base_url=os.getenv("LLM_BASE_URL", defaults.base_url),
            temperature=_float_from_env("LLM_TEMPERATURE", defaults.temperature),
            timeout_seconds=_float_from_env("LLM_TIMEOUT_SECONDS", defaults.timeout_seconds),
            history_turns=max(0, _int_from_env("LLM_HISTORY_TURNS", defaults.history_turns)),
        )


@dataclass(slots=True)
class Settings:
    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    llm: LLMSettings = field(default_factory=LLMSettings)
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = ChunkingConfig()
        try:
            chunking = ChunkingConfig(
                target_size=_int_from_env("CHUNK_TARGET_SIZE", defaults.target_size),
                overlap=_int_from_env("CHUNK_OVERLAP", defaults.overlap),
                min_size=_int_from_env("CHUNK_MIN_SIZE", defaults.min_size),
            )
        except ValueError as error:
            LOGGER.warning("Invalid chunking settings (%s); using defaults", error)
            chunking = defaults

        retrieval_defaults = RetrievalConfig()
        try:
            retrieval = RetrievalConfig(
                top_k=_int_from_env("RETRIEVAL_TOP_K", retrieval_defaults.top_k),
                min_score=_float_from_env("RETRIEVAL_MIN_SCORE", retrieval_defaults.min_score),
            )
        except ValueError as error:
            LOGGER.warning("Invalid retrieval settings (%s); using defaults", error)
            retrieval = retrieval_defaults

        return cls(
            chunking=chunking,
            retrieval=retrieval,
            llm=LLMSettings.from_env(),
            cors_allow_origins=_list_from_env("CORS_ALLOW_ORIGINS", ["*"]),
        )
