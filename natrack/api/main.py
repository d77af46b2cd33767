"""
natrack.api.main — NaTrack HTTP API
=====================================

Exposes session recording (which runs the challenge and object-card
rewards) and the caller's own challenge and notifications, all under
``/api``.  The daily jobs are separate processes; this app never assigns
challenges.

Run with::

    uvicorn natrack.api.main:app --port 3001
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from natrack.api.deps import get_engine  # noqa: E402
from natrack.api.routes.me import router as me_router  # noqa: E402
from natrack.api.routes.sessions import router as sessions_router  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Origins allowed to call the API from a browser.

    ``CORS_ALLOW_ORIGINS`` (comma-separated) wins over ``FRONTEND_URL``;
    with neither set, cross-origin calls are refused.
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the engine before the first request."""
    engine = get_engine()
    logger.info("NaTrack API started — engine ready (%s)", engine.url.database)
    yield
    logger.info("NaTrack API shutting down")


app = FastAPI(
    title="NaTrack API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sessions_router, prefix="/api")
app.include_router(me_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
