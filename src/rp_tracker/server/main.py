"""
RP Tracker FastAPI server main entrypoint.
Handles CORS, error handling, health checks and API routers.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from urllib.parse import urlparse

import psutil
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import SETTINGS
from ..db import close_db, init_db
from .routes.exercises import router as r_exercises
from .routes.progression import router as r_progression


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    try:
        await init_db()
        logging.info("FastAPI server startup completed")
    except Exception as e:
        logging.exception("FastAPI startup failed: %s", e)
        raise

    yield

    # Shutdown
    try:
        await close_db()
        logging.info("FastAPI server shutdown completed")
    except Exception as e:
        logging.exception("FastAPI shutdown failed: %s", e)


app = FastAPI(
    title="RP Tracker API",
    description="Adaptive workout progression and mesocycle tracking",
    version=__version__,
    lifespan=lifespan,
)

# CORS setup: allow the configured webapp plus local development origins
allowed: set[str] = set()
try:
    u = urlparse(SETTINGS.WEBAPP_URL)
    if u.scheme and u.netloc:
        allowed.add(f"{u.scheme}://{u.netloc}")
except ValueError:
    logging.warning("Ignoring malformed WEBAPP_URL: %s", SETTINGS.WEBAPP_URL)
allowed.add("http://localhost:3000")
allowed.add("http://127.0.0.1:3000")

app.add_middleware(
    CORSMiddleware,
    allow_origins=sorted(allowed),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exc_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler: log and return a generic error response.
    """
    logging.exception("Unhandled error in %s: %s", request.url, exc)
    return JSONResponse(
        {"ok": False, "error": "internal_error", "message": "Internal server error"},
        status_code=500,
    )


@app.get("/healthz")
async def healthz() -> dict:
    """
    Health check endpoint with system status.
    """
    try:
        memory = psutil.virtual_memory()
        cpu_percent = psutil.cpu_percent(interval=0.1)
        is_healthy = memory.percent < 90 and cpu_percent < 95

        return {
            "ok": is_healthy,
            "status": "healthy" if is_healthy else "degraded",
            "timestamp": datetime.now(UTC).isoformat(),
            "system": {
                "memory_percent": round(memory.percent, 1),
                "memory_available_mb": round(memory.available / 1024 / 1024, 1),
                "cpu_percent": round(cpu_percent, 1),
            },
        }

    except Exception as e:
        logging.exception("Health check failed: %s", e)
        return {
            "ok": False,
            "status": "error",
            "timestamp": datetime.now(UTC).isoformat(),
            "error": str(e),
        }


@app.get("/")
async def root() -> dict:
    """
    Root endpoint with API information.
    """
    return {
        "ok": True,
        "name": "RP Tracker API",
        "version": __version__,
        "description": "Adaptive workout progression and mesocycle tracking",
    }


# Routers for API endpoints
app.include_router(r_exercises, prefix="/api/v1", tags=["exercises"])
app.include_router(r_progression, prefix="/api/v1", tags=["progression"])
