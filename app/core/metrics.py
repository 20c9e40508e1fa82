"""Prometheus metrics for monitoring."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# HTTP Request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

http_requests_in_progress = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests in progress",
    ["method", "endpoint"],
)

# Supply ledger metrics
supply_view_loads_total = Counter(
    "supply_view_loads_total",
    "Total supply view loads",
    ["view", "status"],  # view: zone, merged; status: complete, incomplete
)

supply_chain_days = Histogram(
    "supply_chain_days",
    "Number of days replayed from the baseline per view load",
    buckets=[0, 1, 7, 14, 30, 60, 90, 180, 365],
)

supply_fetch_failures_total = Counter(
    "supply_fetch_failures_total",
    "Failed ledger reads by source",
    ["source"],  # source: baseline, restock, consumption, today_restock, today_consumption
)

supply_saves_total = Counter(
    "supply_saves_total",
    "Supply tracker save attempts",
    ["status"],  # status: saved, merged_view, incomplete, baseline
)

# System metrics
app_uptime_seconds = Gauge(
    "app_uptime_seconds",
    "Application uptime in seconds",
)

app_info = Gauge(
    "app_info",
    "Application info",
    ["version", "environment"],
)

# Error metrics
errors_total = Counter(
    "errors_total",
    "Total errors by type",
    ["error_type", "component"],
)
