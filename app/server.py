"""
Document Q&A - Web API Server
------------------------------
FastAPI server that wraps the QAPipeline for browser clients.

Endpoints:
  GET  /api/health    -> pipeline status, registered collections, model
  POST /api/ask       -> {question} -> {response}

Run from the project root:
    uvicorn app.server:app --port 3001

The registry and config paths are relative to CWD. Do not run
`python -m docqa.main ingest` while this server is taking traffic.
"""
from __future__ import annotations

import asyncio
import sys
from contextlib import asynccontextmanager
from typing import Optional

# Windows cp1252 terminal fix
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from pydantic import BaseModel

from docqa import errors

# ---------------------------------------------------------------------------
# Pipeline singleton
# ---------------------------------------------------------------------------

_pipeline = None


def _collection_count() -> Optional[int]:
    """Registered collections, or None when the registry cannot be read."""
    try:
        return len(_pipeline.retriever.registry)
    except errors.RegistryError as exc:
        logger.warning(f"[Server] Registry unreadable: {exc}")
        return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the QA pipeline once at startup; drop it on shutdown."""
    global _pipeline
    from docqa.config import load_config
    from docqa.serving.pipeline import QAPipeline
    from docqa.utils.logger import setup_from_config

    cfg = load_config()
    setup_from_config(cfg)
    logger.info("[Server] Loading QA pipeline...")
    _pipeline = QAPipeline.from_config(cfg)
    logger.info(
        f"[Server] Pipeline ready | "
        f"{_collection_count()} registered collections | "
        f"model={getattr(_pipeline.composer.generator, 'model', '?')}"
    )
    yield
    _pipeline = None
    logger.info("[Server] Pipeline unloaded.")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Document Q&A API",
    description="Question answering over a fixed document corpus",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request / Response models
# ---------------------------------------------------------------------------

class AskRequest(BaseModel):
    # Optional so a missing question gets the same 400 as an empty one
    question: Optional[str] = None


class AskResponse(BaseModel):
    response: str


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.get("/api/health")
async def health():
    """Return pipeline status and registry size."""
    if _pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline not ready")
    collections = _collection_count()
    return {
        "status": "ok" if collections is not None else "degraded",
        "collections": collections,
        "top_k": _pipeline.retriever.top_k,
        "model": getattr(_pipeline.composer.generator, "model", None),
    }


@app.post("/api/ask", response_model=AskResponse)
async def ask(request: AskRequest):
    """
    Answer a question from the ingested documents.

    The blocking pipeline.query() call runs in a thread-pool executor so
    independent requests do not stall the event loop.
    """
    if _pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline not ready")

    question = (request.question or "").strip()
    if not question:
        raise HTTPException(status_code=400, detail="Question is required.")

    logger.info(f"[API] Ask | question={question[:80]!r}")

    loop = asyncio.get_running_loop()
    try:
        result = await loop.run_in_executor(None, _pipeline.query, question)
    except errors.ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return AskResponse(response=result.answer)
