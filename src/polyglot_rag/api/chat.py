"""Stateless chat endpoint: the caller supplies the retrieved context."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from polyglot_rag.llm_provider import LLMGenerationError
from polyglot_rag.prompt_builder import ChatTurn, MessageRole, Passage
from polyglot_rag.services.rag import RAGService, get_rag_service

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])

GENERIC_ERROR_MESSAGE = "Could not retrieve a response. Please try again."


class ContextChunk(BaseModel):
    page: int = Field(..., ge=1)
    text: str
    id: Optional[str] = None


class ChatMessage(BaseModel):
    role: MessageRole
    content: str


class ChatRequest(BaseModel):
    query: Optional[str] = None
    context: list[ContextChunk] = Field(default_factory=list)
    history: list[ChatMessage] = Field(default_factory=list)


class ChatResponse(BaseModel):
    answer: str


@router.post("/query", response_model=ChatResponse)
async def chat_query(request: ChatRequest, rag_service: RAGService = Depends(get_rag_service)) -> ChatResponse:
    if not request.query or not request.query.strip():
        raise HTTPException(status_code=400, detail="Missing query")

    passages = [Passage(page=item.page, text=item.text) for item in request.context]
    history = [ChatTurn(role=message.role, content=message.content) for message in request.history]
    try:
        answer = await rag_service.answer_with_context(request.query, passages, history)
    except LLMGenerationError as exc:
        LOGGER.error("Chat query failed: %s", exc)
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE) from exc
    return ChatResponse(answer=answer)
