from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from typing import List, Optional, Sequence

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from polyglot_rag.config import Settings
from polyglot_rag.ingest import ExtractionError, ExtractionPipeline
from polyglot_rag.llm_provider import LLM, LLMGenerationError, LLMTimeoutError, get_llm
from polyglot_rag.logging_config import AUDIT_LOGGER_NAME
from polyglot_rag.prompt_builder import NO_DATA_MESSAGE, ChatTurn, Passage, build_system_instruction
from polyglot_rag.retrieval import EmptyDocument, NoRelevantContent, Retriever, ScoredChunk, index
from polyglot_rag.sessions import SessionState, SessionStore
from polyglot_rag.telemetry import (
    emit_exception,
    emit_inference_request,
    emit_inference_result,
    emit_ingest_event,
    emit_prompt_event,
    emit_retriever_event,
    traced_duration,
)

LOGGER = logging.getLogger(__name__)
AUDIT_LOGGER = logging.getLogger(AUDIT_LOGGER_NAME)


@dataclass(slots=True)
class IngestResult:
    """Structured result returned from :meth:`RAGService.ingest`."""

    session_id: str
    file_name: str
    page_count: int
    chunk_count: int
    language: Optional[str]
    version: int
    replaced_version: Optional[int]
    duration_seconds: float


@dataclass(slots=True)
class SourceChunk:
    """A retrieved chunk returned alongside an answer."""

    id: int
    page: int
    content: str
    score: float


@dataclass(slots=True)
class AnswerResult:
    """Structured result returned from :meth:`RAGService.answer`."""

    session_id: str
    question: str
    answer: str
    top_k: int
    version: int
    insufficient_information: bool
    sources: List[SourceChunk]


class RAGService:
    """Orchestrates upload indexing and grounded question answering."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        pipeline: ExtractionPipeline | None = None,
        store: SessionStore | None = None,
        retriever: Retriever | None = None,
        llm: LLM | None = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.pipeline = pipeline or ExtractionPipeline()
        self.store = store or SessionStore()
        self.retriever = retriever or Retriever(self.settings.retrieval)
        self._llm = llm

    @property
    def llm(self) -> LLM:
        if self._llm is None:
            self._llm = get_llm(self.settings.llm)
        return self._llm

    async def ingest(self, session_id: str, upload: UploadFile) -> IngestResult:
        # One byte past the limit is enough for the pipeline to reject the upload.
        data = await upload.read(self.pipeline.config.max_upload_bytes + 1)
        file_name = upload.filename or "upload"
        return await run_in_threadpool(self.ingest_bytes, session_id, data, file_name, upload.content_type)

    def ingest_bytes(
        self,
        session_id: str,
        data: bytes,
        file_name: str,
        mime_type: str | None = None,
    ) -> IngestResult:
        """Extract and index *data*, then make it the session's document.

        On failure the previously indexed document stays active.
        """

        started = time.perf_counter()
        emit_ingest_event("ingest.file.start", session_id=session_id, file_name=file_name, size_bytes=len(data))

        try:
            document = self.pipeline.extract(data, file_name, mime_type)
            with traced_duration("index.build", session_id=session_id, file=file_name):
                snapshot = index(document.pages, self.settings.chunking)
        except EmptyDocument as error:
            emit_exception(
                module=f"{__name__}.index",
                error=error,
                session_id=session_id,
                suggestion="Upload a document with a text layer (scanned PDFs need OCR first).",
            )
            raise
        except ExtractionError as error:
            emit_exception(module=f"{__name__}.extract", error=error, session_id=session_id)
            raise

        previous = self.store.replace(
            SessionState(
                session_id=session_id,
                file_name=file_name,
                snapshot=snapshot,
                language=document.language,
            )
        )
        self._release(previous)
        duration = time.perf_counter() - started
        LOGGER.info(
            "Indexed %s for session %s: %s pages, %s chunks in %.3fs",
            file_name,
            session_id,
            document.page_count,
            len(snapshot),
            duration,
        )
        emit_ingest_event(
            "ingest.file.complete",
            session_id=session_id,
            file_name=file_name,
            size_bytes=len(data),
            duration_ms=duration * 1000.0,
            language=document.language,
            pages=document.page_count,
            chunks=len(snapshot),
            version=snapshot.version,
        )
        AUDIT_LOGGER.info(
            {
                "event": "ingest",
                "session_id": session_id,
                "file_name": file_name,
                "chunk_count": len(snapshot),
                "version": snapshot.version,
            }
        )
        return IngestResult(
            session_id=session_id,
            file_name=file_name,
            page_count=document.page_count,
            chunk_count=len(snapshot),
            language=document.language,
            version=snapshot.version,
            replaced_version=previous.snapshot.version if previous else None,
            duration_seconds=duration,
        )

    def describe(self, session_id: str) -> SessionState:
        return self.store.require(session_id)

    def reset(self, session_id: str) -> bool:
        previous = self.store.pop(session_id)
        self._release(previous)
        cleared = previous is not None
        AUDIT_LOGGER.info({"event": "reset", "session_id": session_id, "cleared": cleared})
        return cleared

    async def answer(
        self,
        session_id: str,
        question: str,
        *,
        history: Sequence[ChatTurn] = (),
        top_k: int | None = None,
    ) -> AnswerResult:
        # One snapshot for the whole request, even if an upload lands meanwhile.
        state = self.store.require(session_id)
        snapshot = state.snapshot
        effective_top_k = top_k if top_k is not None else self.settings.retrieval.top_k

        started = time.perf_counter()
        scored = self.retriever.retrieve(question, snapshot.chunks, top_k=effective_top_k)
        emit_retriever_event(
            session_id=session_id,
            query=question,
            top_k=effective_top_k,
            version=snapshot.version,
            results=[{"id": item.chunk.id, "page": item.chunk.page, "score": round(item.score, 4)} for item in scored],
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )

        try:
            passages = self._grounding(question, scored)
        except NoRelevantContent:
            LOGGER.info("No relevant passages for session %s", session_id)
            answer_text = NO_DATA_MESSAGE
            insufficient = True
        else:
            answer_text = await self.generate(question, passages, history, session_id=session_id)
            insufficient = False

        AUDIT_LOGGER.info(
            {
                "event": "query",
                "session_id": session_id,
                "question": question,
                "version": snapshot.version,
                "sources": [item.chunk.id for item in scored],
            }
        )
        return AnswerResult(
            session_id=session_id,
            question=question,
            answer=answer_text,
            top_k=effective_top_k,
            version=snapshot.version,
            insufficient_information=insufficient,
            sources=[
                SourceChunk(id=item.chunk.id, page=item.chunk.page, content=item.chunk.text, score=item.score)
                for item in scored
            ],
        )

    async def answer_with_context(
        self,
        question: str,
        passages: Sequence[Passage],
        history: Sequence[ChatTurn] = (),
    ) -> str:
        """Answer from caller-supplied passages without consulting a session."""

        if not passages:
            return NO_DATA_MESSAGE
        return await self.generate(question, passages, history)

    async def generate(
        self,
        question: str,
        passages: Sequence[Passage],
        history: Sequence[ChatTurn] = (),
        *,
        session_id: str | None = None,
    ) -> str:
        """Call the generator once, bounded by the configured timeout."""

        llm = self.llm
        timeout = self.settings.llm.timeout_seconds
        req_id = uuid.uuid4().hex
        emit_prompt_event(
            system_prompt=build_system_instruction(passages),
            pages=[passage.page for passage in passages],
            context_chars=sum(len(passage.text) for passage in passages),
            history_turns=len(history),
        )
        emit_inference_request(
            req_id=req_id,
            session_id=session_id,
            question=question,
            model=llm.model_name,
            temperature=self.settings.llm.temperature,
            timeout_seconds=timeout,
            passages=len(passages),
        )

        started = time.perf_counter()
        try:
            answer_text = await asyncio.wait_for(llm.generate(question, passages, history), timeout=timeout)
        except asyncio.TimeoutError as error:
            emit_exception(module=f"{__name__}.llm", error=error, req_id=req_id, session_id=session_id)
            raise LLMTimeoutError(f"No answer within {timeout:g}s") from error
        except LLMGenerationError:
            LOGGER.exception("LLM generation failed for session %s", session_id)
            raise

        emit_inference_result(
            req_id=req_id,
            session_id=session_id,
            duration_ms=(time.perf_counter() - started) * 1000.0,
            model_used=llm.model_name,
            answer_preview=answer_text,
            fallback=not llm.model_loaded,
        )
        return answer_text

    def _release(self, state: SessionState | None) -> None:
        """Forget scorer caches held for a snapshot that is no longer served."""

        discard = getattr(self.retriever.scorer, "discard", None)
        if state is not None and discard is not None:
            discard(state.snapshot.chunks)

    @staticmethod
    def _grounding(question: str, scored: Sequence[ScoredChunk]) -> List[Passage]:
        if not scored:
            raise NoRelevantContent(question)
        return [Passage.from_chunk(item.chunk) for item in scored]


_rag_service: RAGService | None = None


def get_rag_service() -> RAGService:
    """FastAPI dependency returning the shared :class:`RAGService` instance."""

    global _rag_service
    if _rag_service is None:
        _rag_service = RAGService()
    return _rag_service
