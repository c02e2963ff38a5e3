"""
FastAPI server: MoltID trust layer API.

Mounts the /v1/agents router and the health check, maps domain errors and
framework errors to the JSON error envelope, and runs the score refresh
worker in a background thread for the lifetime of the app.
"""

from __future__ import annotations

import threading
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend_moltid import __version__
from backend_moltid.api_server.agents import router as agents_router
from backend_moltid.api_server.responses import ERROR_STATUS, STATUS_CODES, error
from backend_moltid.config import get_settings
from backend_moltid.core.exceptions import MoltIDError
from backend_moltid.database import init_db, ping
from backend_moltid.moltid_logging import get_logger
from backend_moltid.services.score_refresh import SHUTDOWN_JOIN_TIMEOUT_SEC, run_score_refresh_loop

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Lifespan: create tables, start background score refresh (never blocks API)
# -----------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Init DB and start the score refresh worker; signal stop on shutdown."""
    settings = get_settings()
    init_db()

    stop_event = threading.Event()
    thread: threading.Thread | None = None
    if settings.score_refresh_interval_sec > 0:
        thread = threading.Thread(
            target=run_score_refresh_loop,
            args=(stop_event, settings.score_refresh_interval_sec),
            name="score-refresh",
            daemon=True,
        )
        thread.start()
    else:
        logger.info("score_refresh_disabled")

    yield

    stop_event.set()
    if thread is not None:
        thread.join(timeout=SHUTDOWN_JOIN_TIMEOUT_SEC)
        if thread.is_alive():
            logger.warning("score_refresh_shutdown_timeout", timeout_sec=SHUTDOWN_JOIN_TIMEOUT_SEC)


# -----------------------------------------------------------------------------
# App and routes
# -----------------------------------------------------------------------------

app = FastAPI(
    title="MoltID API",
    description="The trust layer for the agent internet: Moltbook-verified identities, trust scores, vouches.",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(agents_router)


@app.get("/")
def root() -> dict[str, str]:
    return {"name": "MoltID API", "version": __version__, "health": "/v1/health"}


@app.get("/v1/health")
def health() -> JSONResponse:
    """Liveness + database probe."""
    timestamp = datetime.now(timezone.utc).isoformat()
    if ping():
        return JSONResponse(
            status_code=200,
            content={"status": "healthy", "timestamp": timestamp, "version": __version__},
        )
    return JSONResponse(
        status_code=503,
        content={"status": "unhealthy", "timestamp": timestamp, "error": "Database connection failed"},
    )


# -----------------------------------------------------------------------------
# Error handlers
# -----------------------------------------------------------------------------


@app.exception_handler(MoltIDError)
def moltid_error_handler(request: Request, exc: MoltIDError) -> JSONResponse:
    status = ERROR_STATUS.get(exc.code, 500)
    logger.info("request_rejected", path=request.url.path, code=exc.code, status=status)
    return error(exc.code, exc.message, status)


@app.exception_handler(StarletteHTTPException)
def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Consistent JSON error envelope for HTTPException (auth, unknown routes)."""
    detail: Any = exc.detail
    if isinstance(detail, dict) and "code" in detail:
        return error(str(detail["code"]), str(detail.get("message", "")), exc.status_code)
    code = STATUS_CODES.get(exc.status_code, "error")
    message = "Route not found" if exc.status_code == 404 else str(detail)
    return error(code, message, exc.status_code)


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{location}: {first.get('msg', 'invalid input')}" if location else str(first.get("msg", "invalid input"))
    return error("validation_error", message, 400)


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, error=str(exc))
    return error("internal_error", "Internal server error", 500)
