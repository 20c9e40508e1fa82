"""Healthcheck endpoint with dependency checks."""

from __future__ import annotations

import time
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.domain.supply.calendar import local_today
from app.web.deps import AppSettings, DBSession

router = APIRouter()

PROCESS_START_TIME = time.time()


@router.get("/healthz")
def healthz(db: DBSession, settings: AppSettings):
    """Comprehensive health check endpoint.

    Checks:
    - Database connectivity
    - Ledger chain length since the baseline count
    - Application uptime

    Returns:
        200 OK if all checks pass
        503 Service Unavailable if any check fails
    """
    status = "healthy"
    checks = {}
    overall_healthy = True

    # 1. Database check
    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        latency = (time.time() - start) * 1000  # Convert to ms
        checks["database"] = {"status": "ok", "latency_ms": round(latency, 2)}
    except SQLAlchemyError as e:
        checks["database"] = {"status": "error", "error": str(e)}
        overall_healthy = False
        status = "unhealthy"

    # 2. Chain length: every view load replays this many days
    chain_days = (local_today(settings.app_timezone) - settings.supply_base_date).days
    checks["ledger"] = {
        "status": "ok" if chain_days <= settings.supply_chain_warn_days else "warning",
        "base_date": settings.supply_base_date.isoformat(),
        "chain_days": chain_days,
    }
    if chain_days > settings.supply_chain_warn_days and status == "healthy":
        status = "degraded"

    # 3. Uptime
    uptime_seconds = time.time() - PROCESS_START_TIME
    checks["uptime"] = {
        "status": "ok",
        "uptime_seconds": round(uptime_seconds, 2),
        "uptime_human": _format_uptime(uptime_seconds),
    }

    checks["timestamp"] = datetime.now(timezone.utc).isoformat()

    response = {
        "status": status,
        "healthy": overall_healthy,
        "checks": checks,
    }

    if not overall_healthy:
        raise HTTPException(status_code=503, detail=response)

    return response


def _format_uptime(seconds: float) -> str:
    """Format uptime in human-readable format (e.g., "1d 2h 30m")."""
    days = int(seconds // 86400)
    hours = int((seconds % 86400) // 3600)
    minutes = int((seconds % 3600) // 60)

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0 or not parts:
        parts.append(f"{minutes}m")

    return " ".join(parts)
