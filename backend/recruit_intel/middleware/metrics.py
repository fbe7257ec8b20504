"""
Prometheus Metrics Middleware

Provides request/response metrics plus pipeline counters for monitoring:
- HTTP request latency (p50, p95, p99)
- Request count by endpoint and status
- Active request gauge
- AI call latency by operation
- Submission identity matches by tier
- Batch queue task failures
- Placeholder analyses by reason

Usage:
    from recruit_intel.middleware.metrics import setup_metrics

    # In main.py
    app = FastAPI()
    setup_metrics(app)

Metrics Endpoint:
    GET /metrics - Prometheus-format metrics
"""

import time
import logging
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    CONTENT_TYPE_LATEST,
    generate_latest,
    REGISTRY,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

logger = logging.getLogger(__name__)

# ==================== Prometheus Metrics ====================

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint", "status"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

ACTIVE_REQUESTS = Gauge(
    "http_requests_active",
    "Number of active HTTP requests",
    ["method"]
)

# AI gateway metrics
AI_CALL_LATENCY = Histogram(
    "ai_call_duration_seconds",
    "Latency of generative-AI API calls",
    ["operation"],  # text, document, image, video, insights
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 40.0]
)

# Reconciliation metrics
SUBMISSION_MATCHES = Counter(
    "submission_identity_matches_total",
    "Submissions resolved to a candidate, by matching tier",
    ["outcome"]  # id, email, name, fuzzy, unmatched
)

# Analysis pipeline metrics
BATCH_TASK_FAILURES = Counter(
    "batch_task_failures_total",
    "Batch queue tasks that raised an exception"
)

PLACEHOLDER_ANALYSES = Counter(
    "placeholder_analyses_total",
    "Submissions recorded with a placeholder analysis instead of an AI result",
    ["reason"]  # no_content, missing_url, download_failed, unsupported_type
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Record latency, count and in-flight gauge per route pattern; /metrics itself is not counted."""

    def __init__(self, app: FastAPI, app_name: str = "recruit-intel"):
        super().__init__(app)
        self.app_name = app_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        ACTIVE_REQUESTS.labels(method=method).inc()
        start = time.perf_counter()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        except Exception as e:
            logger.error(f"Unhandled error on {method} {request.url.path}: {e}")
            raise
        finally:
            # Routing has run by now, so the matched route is on the scope
            labels = {"method": method, "endpoint": self._get_endpoint(request), "status": status}
            REQUEST_LATENCY.labels(**labels).observe(time.perf_counter() - start)
            REQUEST_COUNT.labels(**labels).inc()
            ACTIVE_REQUESTS.labels(method=method).dec()

    def _get_endpoint(self, request: Request) -> str:
        """Route pattern for the request, e.g. /api/courses/{course_id}/candidates."""
        path = getattr(request.scope.get("route"), "path", None)
        if path:
            return path

        # Included routers and mounts carry no path of their own
        for route in request.app.routes:
            path = getattr(route, "path", None)
            if not path:
                continue
            match, _ = route.matches(request.scope)
            if match == Match.FULL:
                return path

        return request.url.path


def metrics_endpoint(request: Request) -> Response:
    """Prometheus scrape endpoint."""
    return PlainTextResponse(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST
    )


def setup_metrics(app: FastAPI) -> None:
    """
    Configure Prometheus metrics for FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(PrometheusMiddleware, app_name="recruit-intel")
    app.add_route("/metrics", metrics_endpoint, methods=["GET"])

    logger.info("Prometheus metrics configured")


# ==================== Helper Functions ====================

def record_ai_call_latency(operation: str, duration: float) -> None:
    """Record latency of one AI API call."""
    AI_CALL_LATENCY.labels(operation=operation).observe(duration)


def record_submission_match(outcome: str) -> None:
    """Record how a synced submission was resolved to a candidate."""
    SUBMISSION_MATCHES.labels(outcome=outcome).inc()


def record_batch_task_failure() -> None:
    BATCH_TASK_FAILURES.inc()


def record_placeholder_analysis(reason: str) -> None:
    PLACEHOLDER_ANALYSES.labels(reason=reason).inc()
