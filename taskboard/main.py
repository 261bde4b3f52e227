"""FastAPI application: shared task board server.

Start with::

    uvicorn taskboard.main:app --reload --port 3000

Or::

    python -m taskboard.main
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from taskboard.config import settings
from taskboard.routers import sync, translate
from taskboard.services.broadcast import BroadcastHub
from taskboard.services.persistence import BoardStorage, PersistenceScheduler
from taskboard.services.state_store import StateStore
from taskboard.services.translator import TranslationService

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    storage = BoardStorage(settings.data_file)
    store = StateStore.open(storage, PersistenceScheduler(storage, delay=settings.save_debounce_seconds))
    app.state.store = store
    app.state.hub = BroadcastHub(store)
    app.state.translator = TranslationService()
    logger.info("Board store ready (%s), server ready", storage.path)
    try:
        yield
    finally:
        await store.close()
        logger.info("Pending board write flushed, server stopped")


app = FastAPI(
    title="Shared Task Board API",
    description=(
        "Backend for the shared task board. Keeps every connected session on "
        "one canonical board over a websocket and translates board text with "
        "Mistral AI."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS: allow the local frontend dev server ──────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Register route modules ──────────────────────────────────────────────
app.include_router(sync.router)
app.include_router(translate.router)


@app.get("/health")
async def health(request: Request):
    """Simple health-check endpoint."""
    return {"ok": True, "updatedAt": request.app.state.store.current().updated_at}


def run() -> None:
    import uvicorn

    uvicorn.run(
        "taskboard.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
