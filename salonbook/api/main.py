"""salonbook FastAPI application entry point.

Start with:
    uvicorn salonbook.api.main:app --reload --host 0.0.0.0 --port 8000
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from salonbook import __version__
from salonbook.config import load_scheduling_config
from salonbook.core.exceptions import ProjectError
from salonbook.core.logger import configure as configure_logging
from salonbook.infra.database.engine import (
    build_engine,
    build_session_factory,
    close_engine,
    ensure_database_exists,
    init_db,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ── Startup ──────────────────────────────────────────────────
    configure_logging()

    await ensure_database_exists()
    engine = build_engine()
    app.state.session_factory = build_session_factory(engine)
    await init_db()

    app.state.scheduling_config = load_scheduling_config()
    logger.info(
        "API: scheduling %s, closed weekdays %s, timezone %s",
        app.state.scheduling_config.hours_label,
        sorted(app.state.scheduling_config.closed_weekdays),
        app.state.scheduling_config.timezone,
    )

    yield

    # ── Shutdown ─────────────────────────────────────────────────
    await close_engine()
    logger.info("API: engine disposed")


async def project_error_handler(request: Request, exc: ProjectError) -> JSONResponse:
    """ProjectError → JSON {message, code, details} with the error's HTTP status."""
    if exc.http_status >= 500:
        logger.error("API: %s %s failed: %s", request.method, request.url.path, exc.to_dict(include_cause=True))
    else:
        logger.warning("API: %s %s rejected: %s (%s)", request.method, request.url.path, exc.message, exc.code)
    return JSONResponse(status_code=exc.http_status, content=exc.response_body())


app = FastAPI(
    title="salonbook API",
    version=__version__,
    description="Appointment booking for service businesses: pricing, availability, stock and status.",
    lifespan=lifespan,
)

# Rate limiter, configurable via API_RATE_LIMIT env var (default 120/minute)
_rate_limit = os.environ.get("API_RATE_LIMIT", "120/minute")
limiter = Limiter(key_func=get_remote_address, default_limits=[_rate_limit])
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(ProjectError, project_error_handler)
app.add_middleware(SlowAPIMiddleware)

_allowed_origins = os.environ.get(
    "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
).split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ───────────────────────────────────────────────────────
from salonbook.api.routers import appointments, professionals  # noqa: E402

app.include_router(appointments.router, prefix="/api/v1")
app.include_router(professionals.router, prefix="/api/v1")


@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
