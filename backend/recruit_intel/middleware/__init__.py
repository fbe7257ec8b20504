"""
Middleware Package

Contains FastAPI middleware for:
- Prometheus metrics collection
- Pipeline counters (AI latency, identity matches, batch failures)
"""

from recruit_intel.middleware.metrics import (
    PrometheusMiddleware,
    setup_metrics,
    REQUEST_LATENCY,
    REQUEST_COUNT,
    ACTIVE_REQUESTS,
    AI_CALL_LATENCY,
    SUBMISSION_MATCHES,
    BATCH_TASK_FAILURES,
    PLACEHOLDER_ANALYSES,
)

__all__ = [
    "PrometheusMiddleware",
    "setup_metrics",
    "REQUEST_LATENCY",
    "REQUEST_COUNT",
    "ACTIVE_REQUESTS",
    "AI_CALL_LATENCY",
    "SUBMISSION_MATCHES",
    "BATCH_TASK_FAILURES",
    "PLACEHOLDER_ANALYSES",
]
