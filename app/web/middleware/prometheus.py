"""Prometheus metrics middleware for FastAPI."""

from __future__ import annotations

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.metrics import (
    http_request_duration_seconds,
    http_requests_in_progress,
    http_requests_total,
)

# Fixed segments under /api/v1/supply; anything else in that position is a store id
_SUPPLY_ROUTES = {"items"}


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for HTTP requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and collect metrics."""
        method = request.method
        endpoint = self._normalize_path(request.url.path)

        http_requests_in_progress.labels(method=method, endpoint=endpoint).inc()

        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception:
            http_requests_total.labels(method=method, endpoint=endpoint, status="500").inc()
            raise
        else:
            http_requests_total.labels(
                method=method, endpoint=endpoint, status=str(response.status_code)
            ).inc()
        finally:
            http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(
                time.time() - start_time
            )
            http_requests_in_progress.labels(method=method, endpoint=endpoint).dec()

        return response

    def _normalize_path(self, path: str) -> str:
        """Normalize path by replacing store ids with a placeholder.

        Examples:
            /api/v1/supply/lehua/history -> /api/v1/supply/{store_id}/history
            /api/v1/supply/items -> /api/v1/supply/items
        """
        path = path.split("?")[0]

        parts = path.split("/")
        normalized = []
        for i, part in enumerate(parts):
            if not part:
                normalized.append(part)
                continue

            if part.isdigit() or (
                i > 0 and parts[i - 1] == "supply" and part not in _SUPPLY_ROUTES
            ):
                normalized.append("{store_id}")
            else:
                normalized.append(part)

        return "/".join(normalized)
