"""API router exposing per-session upload, query and reset endpoints."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel, Field

from polyglot_rag.ingest import ExtractionError, UnsupportedFormatError
from polyglot_rag.llm_provider import LLMGenerationError, LLMTimeoutError
from polyglot_rag.prompt_builder import ChatTurn, MessageRole
from polyglot_rag.retrieval import EmptyDocument
from polyglot_rag.services.rag import AnswerResult, IngestResult, RAGService, get_rag_service
from polyglot_rag.sessions import SessionNotFoundError

router = APIRouter(prefix="/sessions", tags=["rag"])


class IngestResponse(BaseModel):
    """Response body returned from the ingest endpoint."""

    status: str
    session_id: str
    file_name: str
    page_count: int
    chunk_count: int
    language: Optional[str]
    version: int
    replaced_version: Optional[int]
    duration_seconds: float


class HistoryMessage(BaseModel):
    role: MessageRole
    content: str


class QueryRequest(BaseModel):
    """Request body accepted by the query endpoint."""

    question: str = Field(..., min_length=1, description="User question to answer from the document.")
    top_k: Optional[int] = Field(None, ge=1, le=50, description="Maximum number of passages to ground on.")
    history: list[HistoryMessage] = Field(default_factory=list, description="Previous chat turns, oldest first.")


class AnswerSource(BaseModel):
    """Individual source chunk returned in an answer."""

    id: int
    page: int
    content: str
    score: float


class QueryResponse(BaseModel):
    """Response payload for the query endpoint."""

    session_id: str
    question: str
    answer: str
    top_k: int
    version: int
    insufficient_information: bool
    sources: list[AnswerSource]


class SessionResponse(BaseModel):
    session_id: str
    file_name: str
    language: Optional[str]
    page_count: int
    chunk_count: int
    version: int


def _to_turns(history: list[HistoryMessage]) -> list[ChatTurn]:
    return [ChatTurn(role=message.role, content=message.content) for message in history]


@router.post("/{session_id}/ingest", response_model=IngestResponse)
async def ingest_document(
    session_id: str,
    file: UploadFile = File(...),
    rag_service: RAGService = Depends(get_rag_service),
) -> IngestResponse:
    """Index an uploaded document, replacing the session's previous one."""

    try:
        result: IngestResult = await rag_service.ingest(session_id, file)
    except UnsupportedFormatError as exc:
        raise HTTPException(status_code=415, detail=str(exc)) from exc
    except ExtractionError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except EmptyDocument as exc:
        raise HTTPException(
            status_code=422,
            detail=f"{exc} Upload a document with selectable text.",
        ) from exc

    return IngestResponse(
        status="ok",
        session_id=result.session_id,
        file_name=result.file_name,
        page_count=result.page_count,
        chunk_count=result.chunk_count,
        language=result.language,
        version=result.version,
        replaced_version=result.replaced_version,
        duration_seconds=result.duration_seconds,
    )


@router.get("/{session_id}", response_model=SessionResponse)
def describe_session(session_id: str, rag_service: RAGService = Depends(get_rag_service)) -> SessionResponse:
    try:
        state = rag_service.describe(session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return SessionResponse(
        session_id=state.session_id,
        file_name=state.file_name,
        language=state.language,
        page_count=state.snapshot.page_count,
        chunk_count=len(state.snapshot),
        version=state.snapshot.version,
    )


@router.delete("/{session_id}")
def reset_session(session_id: str, rag_service: RAGService = Depends(get_rag_service)) -> dict[str, object]:
    """Start a new session by discarding its indexed document."""

    cleared = rag_service.reset(session_id)
    return {"status": "ok", "session_id": session_id, "cleared": cleared}


@router.post("/{session_id}/query", response_model=QueryResponse)
async def query_document(
    session_id: str,
    request: QueryRequest,
    rag_service: RAGService = Depends(get_rag_service),
) -> QueryResponse:
    """Answer a question from the session's indexed document."""

    if not request.question.strip():
        raise HTTPException(status_code=422, detail="Question must not be empty")

    try:
        result: AnswerResult = await rag_service.answer(
            session_id,
            request.question,
            history=_to_turns(request.history),
            top_k=request.top_k,
        )
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except LLMTimeoutError as exc:
        raise HTTPException(status_code=504, detail=str(exc)) from exc
    except LLMGenerationError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return QueryResponse(
        session_id=result.session_id,
        question=result.question,
        answer=result.answer,
        top_k=result.top_k,
        version=result.version,
        insufficient_information=result.insufficient_information,
        sources=[
            AnswerSource(id=source.id, page=source.page, content=source.content, score=source.score)
            for source in result.sources
        ],
    )
