"""
Gateway Flow - Prometheus Metrics

Exposes /metrics endpoint for observability.
Tracks API traffic, log polling outcomes, gateway latency and timeline size.
"""
import time
from functools import wraps
from typing import Callable
from prometheus_client import (
    Counter, Histogram, Gauge, Info,
    generate_latest, CONTENT_TYPE_LATEST
)
from fastapi import APIRouter, Response


router = APIRouter()

# ═══════════════════════════════════════════════════════════
# COUNTERS
# ═══════════════════════════════════════════════════════════

api_requests = Counter(
    "gateway_flow_api_requests_total",
    "Total API requests",
    ["method", "path", "status"]
)

reconstructions = Counter(
    "gateway_flow_reconstructions_total",
    "Timeline reconstructions performed",
    ["trigger"]
)

malformed_events = Counter(
    "gateway_flow_malformed_events_total",
    "Log events rendered with substituted defaults"
)

snapshots = Counter(
    "gateway_flow_snapshots_total",
    "Log snapshot fetch outcomes",
    ["outcome"]  # applied, stale, failed
)

gateway_errors = Counter(
    "gateway_flow_gateway_errors_total",
    "Failed calls to the remote gateway",
    ["operation"]
)

# ═══════════════════════════════════════════════════════════
# HISTOGRAMS
# ═══════════════════════════════════════════════════════════

api_request_latency = Histogram(
    "gateway_flow_api_request_latency_seconds",
    "API request latency",
    ["method", "path"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

gateway_latency = Histogram(
    "gateway_flow_gateway_latency_seconds",
    "Remote gateway call latency",
    ["operation"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

reconstruction_latency = Histogram(
    "gateway_flow_reconstruction_latency_seconds",
    "Time spent grouping, sequencing and assembling one snapshot",
    buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1]
)

# ═══════════════════════════════════════════════════════════
# GAUGES
# ═══════════════════════════════════════════════════════════

timeline_entries = Gauge(
    "gateway_flow_timeline_entries",
    "Entries in the currently displayed timeline",
    ["kind"]
)

polling_active = Gauge(
    "gateway_flow_polling_active",
    "1 while the log poller is running"
)

# ═══════════════════════════════════════════════════════════
# INFO
# ═══════════════════════════════════════════════════════════

build_info = Info(
    "gateway_flow_build",
    "Build information"
)
build_info.info({
    "version": "1.0.0",
    "service": "api",
})


# ═══════════════════════════════════════════════════════════
# METRICS ENDPOINT
# ═══════════════════════════════════════════════════════════

@router.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


# ═══════════════════════════════════════════════════════════
# DECORATORS
# ═══════════════════════════════════════════════════════════

def track_gateway(operation: str):
    """Decorator to track latency and failures of a blocking gateway call."""
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            except Exception:
                gateway_errors.labels(operation=operation).inc()
                raise
            finally:
                gateway_latency.labels(operation=operation).observe(
                    time.perf_counter() - start
                )
        return wrapper
    return decorator
