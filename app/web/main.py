"""FastAPI application for the store supply ledger."""

from __future__ import annotations

import time

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from app.core.config import get_settings
from app.core.logging import get_logger, get_request_id, set_request_id, setup_logging
from app.core.metrics import app_info, app_uptime_seconds, errors_total
from app.web.middleware import PrometheusMiddleware
from app.web.routers import healthcheck, supply

log = get_logger("supply_ledger.web")

_settings = get_settings()
setup_logging(
    level=_settings.log_level,
    to_stdout=_settings.log_to_stdout,
    file_path=_settings.log_file_path,
)

# Application start time for uptime calculation
APP_START_TIME = time.time()

app = FastAPI(
    title="Store Supply Ledger API",
    version=_settings.app_version,
    description="Forward-chained supply balance reconstruction per store and zone",
)

app.add_middleware(PrometheusMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app_info.labels(version=_settings.app_version, environment=_settings.environment).set(1)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Bind a request id for log correlation and echo it back."""
    rid = set_request_id(request.headers.get("X-Request-ID"))
    response = await call_next(request)
    response.headers["X-Request-ID"] = rid
    return response


# Global exception handler for unhandled errors (500)
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions with proper logging and response."""
    request_id = get_request_id() or set_request_id()
    errors_total.labels(error_type=type(exc).__name__, component="web").inc()

    log.error(
        "unhandled_exception",
        extra={
            "path": str(request.url.path),
            "method": request.method,
            "error": str(exc),
            "error_type": type(exc).__name__,
        },
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_server_error",
            "request_id": request_id,
            "hint": "Contact support with this request_id",
        },
    )


app.include_router(healthcheck.router, tags=["Monitoring"])
app.include_router(supply.router, tags=["Supply"])


@app.get("/health")
def health():
    """Basic health check for monitoring."""
    return {"status": "healthy"}


@app.get("/metrics")
def metrics():
    """Prometheus metrics endpoint."""
    app_uptime_seconds.set(time.time() - APP_START_TIME)
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
