"""
main.py - FastAPI application entrypoint for the Mind Journal service

Purpose:
- Exposes the analysis endpoint used by both the journal page and the chat page:
    POST /analyze {text}            -> validated single-shot journal analysis
    POST /analyze {text, history}   -> chat reply with up to 10 prior turns
- Exposes journal CRUD for the signed-in user (/journals) and the dashboard
  statistics (/journals/stats, see wellness.py).

Design/behavioral notes:
- The AI response pipeline (pipeline.py) is stateless; this file only wires it
  to HTTP, builds the shared httpx client, and persists results.
- Saving is the caller's decision: /analyze never writes to the store. The
  client posts the result to /journals afterwards.
- If every model fails, /analyze answers 503 so the UI can show a generic
  "something went wrong, try again" message.
- Authentication is handled in front of this service; the current user id
  arrives in the X-User-Id header.
"""

import os
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List

import httpx
import pytz
from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .config import get_settings
from .errors import AllModelsFailed, EmptyInput
from .journal_store import build_journal_store, get_journal_store
from .model_clients import build_invoker
from .pipeline import ResponsePipeline
from .schemas import AnalysisResult, AnalyzeRequest, JournalCreateRequest, JournalEntry
from . import wellness

# Configure logging (configurable via LOG_LEVEL env var, read into Settings)
LOG_LEVEL = get_settings().log_level
logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
_logger = logging.getLogger(__name__)


# -------------------------
# Lifespan: shared clients
# -------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: build the pooled httpx client, the generation backend, the
    response pipeline and the journal store. Shutdown: close the client.
    """
    settings = get_settings()
    _logger.info(
        "Mind Journal starting up (backend=%s, models=%s)",
        settings.generation_backend,
        ", ".join(settings.model_ids),
    )

    http_client = httpx.AsyncClient(timeout=httpx.Timeout(settings.generation_timeout_seconds))
    invoker = build_invoker(settings, http_client)
    app.state.pipeline = ResponsePipeline(invoker, settings.model_ids, counselor_name=settings.counselor_name)
    app.state.journal_store = build_journal_store(settings)
    try:
        yield
    finally:
        await http_client.aclose()
        _logger.info("Mind Journal shut down")


app = FastAPI(title="Mind Journal API", lifespan=lifespan)
app.include_router(wellness.router, prefix="/journals")


def get_pipeline(request: Request) -> ResponsePipeline:
    return request.app.state.pipeline


# -------------------------
# Error mapping
# -------------------------
@app.exception_handler(AllModelsFailed)
async def all_models_failed_handler(request: Request, exc: AllModelsFailed):
    _logger.error("Analysis unavailable: %s", exc)
    return JSONResponse(status_code=503, content={"error": "All models failed"})


@app.exception_handler(EmptyInput)
async def empty_input_handler(request: Request, exc: EmptyInput):
    return JSONResponse(status_code=400, content={"error": "Missing text"})


# -------------------------
# Analysis endpoint
# -------------------------
@app.post("/analyze", response_model=AnalysisResult)
async def analyze(payload: AnalyzeRequest, pipeline: ResponsePipeline = Depends(get_pipeline)):
    """
    Run the AI response pipeline.

    - No `history` key: journal mode (validation gate first). A rejected entry
      comes back with mood=null and a clarification message in advice.
    - `history` present (even []): chat mode, no gate.
    """
    if not payload.text or not payload.text.strip():
        raise EmptyInput()

    return await pipeline.analyze(payload.text, payload.history)


# -------------------------
# Journal CRUD
# -------------------------
@app.get("/journals", response_model=List[JournalEntry])
async def list_journals(user_id: str = Depends(wellness.get_current_user_id), store=Depends(get_journal_store)):
    try:
        return store.list_entries(user_id)
    except Exception as e:
        _logger.exception("Error fetching journals for user %s: %s", user_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch journals")


@app.post("/journals", response_model=JournalEntry)
async def create_journal(
    payload: dict = Body(...),
    user_id: str = Depends(wellness.get_current_user_id),
    store=Depends(get_journal_store),
):
    """
    Persist an analyzed entry. All of text, mood, summary and advice are required.
    """
    try:
        entry = JournalCreateRequest.model_validate(payload)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Missing required fields")

    try:
        return store.create_entry(user_id, entry.text, entry.mood, entry.summary, entry.advice)
    except Exception as e:
        _logger.exception("Error saving journal for user %s: %s", user_id, e)
        raise HTTPException(status_code=500, detail="Failed to save journal")


@app.delete("/journals/{journal_id}")
async def delete_journal(
    journal_id: str,
    user_id: str = Depends(wellness.get_current_user_id),
    store=Depends(get_journal_store),
):
    try:
        journal = store.get_entry(journal_id)
    except Exception as e:
        _logger.exception("Error loading journal %s: %s", journal_id, e)
        raise HTTPException(status_code=500, detail="Failed to delete journal")

    if journal is None:
        raise HTTPException(status_code=404, detail="Journal not found")
    if journal.user_id != user_id:
        _logger.warning("User %s tried to delete journal %s owned by someone else", user_id, journal_id)
        raise HTTPException(status_code=403, detail="Forbidden")

    try:
        store.delete_entry(journal_id)
    except Exception as e:
        _logger.exception("Error deleting journal %s: %s", journal_id, e)
        raise HTTPException(status_code=500, detail="Failed to delete journal")

    return {"message": "Journal deleted successfully"}


# -------------------------
# Health
# -------------------------
@app.get("/health")
async def health_check():
    settings = get_settings()
    return {
        "status": "healthy",
        "timestamp": datetime.now(pytz.utc).isoformat(),
        "generation_backend": settings.generation_backend,
        "models": list(settings.model_ids),
        "api_key_configured": bool(settings.gemini_api_key),
    }


# -------------------------
# Run with Uvicorn when executed directly
# -------------------------
if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("mindjournal.main:app", host="0.0.0.0", port=port, reload=True)
