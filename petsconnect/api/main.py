"""
petsconnect.api.main — FastAPI application entry point
=======================================================

Run with::

    uvicorn petsconnect.api.main:app --reload --port 8000

or ``python -m petsconnect.api``.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

from petsconnect import __version__  # noqa: E402
from petsconnect.api.deps import get_config, get_engine  # noqa: E402
from petsconnect.api.routes.engagement import router as engagement_router  # noqa: E402
from petsconnect.api.routes.feed import router as feed_router  # noqa: E402
from petsconnect.api.routes.rewards import router as rewards_router  # noqa: E402
from petsconnect.errors import DuplicateAction, PetsConnectError  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
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
    """Startup/shutdown lifecycle: load config and warm the DB engine."""
    cfg = get_config()
    engine = get_engine()
    logger.info(
        "%s API started, engine ready (%s)", cfg.community_name, engine.url.database
    )
    yield
    logger.info("%s API shutting down", cfg.community_name)


app = FastAPI(
    title="PetsConnect API",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PetsConnectError)
async def petsconnect_error_handler(request: Request, exc: PetsConnectError):
    if isinstance(exc, DuplicateAction):
        logger.info("%s %s: %s", request.method, request.url.path, exc.detail)
    elif exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(feed_router, prefix="/api")
app.include_router(engagement_router, prefix="/api")
app.include_router(rewards_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
