"""Structured lifecycle events shared by the service layers."""

from __future__ import annotations

import logging
import os
import platform
import sys
import time
import traceback
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Optional

LOGGER = logging.getLogger("polyglot_rag.telemetry")

_ENV_KEYS_TO_LOG: tuple[str, ...] = (
    "CHUNK_TARGET_SIZE",
    "CHUNK_OVERLAP",
    "CHUNK_MIN_SIZE",
    "RETRIEVAL_TOP_K",
    "RETRIEVAL_MIN_SCORE",
    "LLM_MODEL",
    "LLM_BASE_URL",
    "LLM_TEMPERATURE",
    "LLM_TIMEOUT_SECONDS",
    "LLM_HISTORY_TURNS",
    "LOG_DIR",
)


def _format_exception(error: BaseException) -> str:
    return "".join(traceback.format_exception(error.__class__, error, error.__traceback__))


def log_event(
    logger: Optional[logging.Logger],
    step: str,
    *,
    level: str = "info",
    req_id: str | None = None,
    session_id: str | None = None,
    duration_ms: float | None = None,
    exc: BaseException | str | None = None,
    details: dict[str, Any] | None = None,
    **payload: Any,
) -> None:
    """Emit a structured log event with the agreed-upon schema."""

    logger = logger or LOGGER
    event: dict[str, Any] = {"step": step, "module": logger.name}
    if req_id:
        event["req_id"] = req_id
    if session_id:
        event["session_id"] = session_id
    if duration_ms is not None:
        event["duration_ms"] = round(duration_ms, 3)
    if details is not None:
        event["details"] = details
    event.update(payload)

    exc_info = None
    if exc is not None:
        if isinstance(exc, BaseException):
            event["exc"] = _format_exception(exc)
            exc_info = (exc.__class__, exc, exc.__traceback__)
        else:
            event["exc"] = str(exc)

    log_method = getattr(logger, level.lower(), logger.info)
    log_method(event, exc_info=exc_info)


def emit_app_startup_event() -> None:
    details = {
        "python": sys.version.split()[0],
        "platform": platform.platform(),
        "pid": os.getpid(),
        "env": {key: os.getenv(key) for key in _ENV_KEYS_TO_LOG if os.getenv(key) is not None},
    }
    log_event(LOGGER, "app.startup", details=details)


def emit_ingest_event(
    step: str,
    *,
    file_name: str,
    session_id: str,
    size_bytes: int | None = None,
    duration_ms: float | None = None,
    language: str | None = None,
    pages: int | None = None,
    chunks: int | None = None,
    version: int | None = None,
) -> None:
    details = {
        "file": file_name,
        "size_bytes": size_bytes,
        "language": language,
        "pages": pages,
        "chunks": chunks,
        "version": version,
    }
    log_event(LOGGER, step, session_id=session_id, duration_ms=duration_ms, details=details)


def emit_retriever_event(
    *,
    session_id: str | None,
    query: str,
    top_k: int,
    version: int | None,
    results: list[dict[str, Any]],
    duration_ms: float,
) -> None:
    details = {
        "query_preview": query[:120],
        "top_k": top_k,
        "version": version,
        "results": results,
    }
    log_event(LOGGER, "retriever.search", session_id=session_id, duration_ms=duration_ms, details=details)


def emit_prompt_event(
    *,
    system_prompt: str,
    pages: Iterable[int],
    context_chars: int,
    history_turns: int,
) -> None:
    details = {
        "system_prompt_preview": system_prompt[:120],
        "pages": list(pages),
        "context_chars": context_chars,
        "history_turns": history_turns,
    }
    log_event(LOGGER, "prompt.compose", details=details)


def emit_inference_request(
    *,
    req_id: str,
    session_id: str | None,
    question: str,
    model: str,
    temperature: float,
    timeout_seconds: float,
    passages: int,
) -> None:
    details = {
        "question_preview": question[:120],
        "model": model,
        "temperature": temperature,
        "timeout_seconds": timeout_seconds,
        "passages": passages,
    }
    log_event(LOGGER, "inference.request", req_id=req_id, session_id=session_id, details=details)


def emit_inference_result(
    *,
    req_id: str,
    session_id: str | None,
    duration_ms: float,
    model_used: str,
    answer_preview: str,
    fallback: bool,
) -> None:
    details = {
        "model_used": model_used,
        "answer_preview": answer_preview[:120],
        "fallback": fallback,
    }
    log_event(
        LOGGER,
        "inference.result",
        req_id=req_id,
        session_id=session_id,
        duration_ms=duration_ms,
        details=details,
    )


def emit_exception(
    *,
    module: str,
    error: BaseException,
    req_id: str | None = None,
    session_id: str | None = None,
    suggestion: str | None = None,
) -> None:
    details = {"module": module}
    if suggestion:
        details["suggestion"] = suggestion
    log_event(
        LOGGER,
        "exception",
        level="error",
        req_id=req_id,
        session_id=session_id,
        details=details,
        exc=error,
    )


@contextmanager
def traced_duration(step: str, *, logger: Optional[logging.Logger] = None, **fields: Any) -> Iterator[None]:
    """Log ``<step>.start`` and then exactly one of ``.complete`` or ``.failed``.

    Failures are reported without a traceback; the handler that catches the
    error owns the ``exception`` event.
    """

    logger = logger or LOGGER
    start = time.perf_counter()
    log_event(logger, f"{step}.start", details=fields)
    try:
        yield
    except Exception as error:
        log_event(
            logger,
            f"{step}.failed",
            duration_ms=(time.perf_counter() - start) * 1000.0,
            details=fields,
            error_type=type(error).__name__,
        )
        raise
    log_event(logger, f"{step}.complete", duration_ms=(time.perf_counter() - start) * 1000.0, details=fields)
