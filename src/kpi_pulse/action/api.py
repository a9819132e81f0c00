"""FastAPI application exposing KPI recomputation and alert endpoints."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.settings import settings
from kpi_pulse.action.routers.alerts import router as alerts_router
from kpi_pulse.action.routers.kpis import router as kpis_router
from kpi_pulse.errors import (
    KPIPulseError,
    KPIValidationError,
    NotFoundError,
    PersistenceError,
    UpstreamDataError,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="KPI Pulse API", version="1.0.0")

# CORS: set CORS_ORIGINS (comma-separated) in production.
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(kpis_router)
app.include_router(alerts_router)

_ERROR_STATUS = {
    NotFoundError: 404,
    KPIValidationError: 422,
    UpstreamDataError: 502,
    PersistenceError: 503,
}


@app.exception_handler(KPIPulseError)
async def _kpi_error_handler(request: Request, exc: KPIPulseError):
    """Map engine errors to HTTP status codes."""
    status_code = next((code for cls, code in _ERROR_STATUS.items() if isinstance(exc, cls)), 500)
    if status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": exc.message,
            "error": type(exc).__name__,
            "details": exc.details if isinstance(exc.details, (dict, list)) else None,
            "status": "failed",
        },
    )


@app.exception_handler(Exception)
async def _global_error_handler(request: Request, exc: Exception):
    """Catch-all: ensure every unhandled error returns JSON, not raw HTML."""
    logger.exception("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={
            "detail": f"Server error: {exc}",
            "error": str(exc),
            "status": "failed",
        },
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "version": app.version}
