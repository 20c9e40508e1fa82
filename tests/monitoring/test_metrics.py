"""Tests for Prometheus metrics."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from app.web.main import app
from app.web.middleware.prometheus import PrometheusMiddleware


@pytest.fixture
def client():
    """Test client."""
    with TestClient(app) as c:
        yield c


def test_metrics_endpoint_exists(client):
    """Test /metrics endpoint is accessible."""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "text/plain" in response.headers["content-type"]


def test_metrics_contains_http_requests(client):
    """Test metrics include HTTP request counters."""
    client.get("/health")

    content = client.get("/metrics").text
    assert "http_requests_total" in content
    assert "http_request_duration_seconds" in content


def test_metrics_contains_app_info_and_uptime(client):
    content = client.get("/metrics").text
    assert "app_info" in content
    assert "app_uptime_seconds" in content


def test_http_requests_increment(client):
    """Test HTTP request counter increments."""
    labels = {"method": "GET", "endpoint": "/health", "status": "200"}
    before = REGISTRY.get_sample_value("http_requests_total", labels) or 0.0

    client.get("/health")
    client.get("/health")

    assert REGISTRY.get_sample_value("http_requests_total", labels) == before + 2


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/api/v1/supply/items", "/api/v1/supply/items"),
        ("/api/v1/supply/lehua", "/api/v1/supply/{store_id}"),
        ("/api/v1/supply/lehua/history", "/api/v1/supply/{store_id}/history"),
        ("/api/v1/supply/42/zones", "/api/v1/supply/{store_id}/zones"),
        ("/healthz", "/healthz"),
    ],
)
def test_normalize_path(path, expected):
    assert PrometheusMiddleware(app)._normalize_path(path) == expected
