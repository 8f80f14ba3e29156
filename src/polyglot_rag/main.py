import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from polyglot_rag.api.chat import router as chat_router
from polyglot_rag.api.rag import router as rag_router
from polyglot_rag.config import Settings
from polyglot_rag.llm_provider import get_llm_status
from polyglot_rag.logging_config import configure_logging
from polyglot_rag.telemetry import emit_app_startup_event

configure_logging()

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="PolyGlot RAG API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=Settings.from_env().cors_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(rag_router)
app.include_router(chat_router)


@app.on_event("startup")
async def _startup() -> None:
    emit_app_startup_event()


@app.get("/", response_class=PlainTextResponse)
def read_root() -> str:
    """Healthcheck endpoint for the service."""
    return "ok"


@app.get("/healthz", response_class=PlainTextResponse)
def healthcheck() -> str:
    """Liveness check used by container orchestrators."""
    return "ok"


@app.get("/healthz/model")
def model_healthcheck() -> dict[str, object]:
    """Expose which answer generator is active."""

    status = get_llm_status()
    payload: dict[str, object] = {
        "model_loaded": status.model_loaded,
        "name": status.model_name,
    }
    if status.error:
        payload["reason"] = status.error
    return payload
