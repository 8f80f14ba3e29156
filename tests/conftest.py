"""Shared fixtures for the test-suite."""
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence

import pytest

# Keep audit logs out of the working tree; must happen before the app is imported.
os.environ.setdefault("LOG_DIR", str(Path(tempfile.gettempdir()) / "polyglot-rag-test-logs"))

from fastapi.testclient import TestClient  # noqa: E402

from polyglot_rag.config import API_KEY_ENV_KEYS, LLMSettings, Settings  # noqa: E402
from polyglot_rag.llm_provider import LLM, LLMStub, reset_llm  # noqa: E402
from polyglot_rag.prompt_builder import ChatTurn, Passage  # noqa: E402
from polyglot_rag.retrieval import ChunkingConfig, RetrievalConfig  # noqa: E402
from polyglot_rag.services.rag import RAGService, get_rag_service  # noqa: E402


class RecordingLLM(LLM):
    """Answer generator double that remembers what it was asked."""

    def __init__(self, answer: str = "RECORDED_ANSWER") -> None:
        self.answer = answer
        self.calls: List[tuple[str, List[Passage], List[ChatTurn]]] = []

    async def generate(
        self,
        question: str,
        passages: Sequence[Passage],
        history: Sequence[ChatTurn] = (),
    ) -> str:
        self.calls.append((question, list(passages), list(history)))
        return self.answer

    @property
    def model_loaded(self) -> bool:
        return True

    @property
    def model_name(self) -> str:
        return "recording"


def build_pdf(page_texts: Sequence[Optional[str]]) -> bytes:
    """Return a minimal PDF with one Helvetica text line per page."""

    page_count = len(page_texts)
    kids = " ".join(f"{4 + 2 * index} 0 R" for index in range(page_count))
    objects: List[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {page_count} >>".encode("ascii"),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for index, text in enumerate(page_texts):
        stream = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode("latin-1") if text else b""
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Contents {5 + 2 * index} 0 R /Resources << /Font << /F1 3 0 R >> >> >>"
            ).encode("ascii")
        )
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    output = bytearray(b"%PDF-1.4\n")
    offsets: List[int] = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(output))
        output += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(output)
    output += b"xref\n0 %d\n" % (len(objects) + 1)
    output += b"0000000000 65535 f \n"
    for offset in offsets:
        output += b"%010d 00000 n \n" % offset
    output += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_offset)
    return bytes(output)


@pytest.fixture(autouse=True)
def _no_api_key(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for key in API_KEY_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    reset_llm()
    yield
    reset_llm()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        chunking=ChunkingConfig(target_size=200, overlap=40, min_size=20),
        retrieval=RetrievalConfig(top_k=3, min_score=0.05),
        llm=LLMSettings(timeout_seconds=5.0),
    )


@pytest.fixture
def service(settings: Settings) -> RAGService:
    return RAGService(settings=settings, llm=LLMStub())


@pytest.fixture
def client(service: RAGService) -> Iterator[TestClient]:
    from polyglot_rag.main import app

    app.dependency_overrides[get_rag_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def pdf_factory() -> Callable[[Sequence[Optional[str]]], bytes]:
    return build_pdf
