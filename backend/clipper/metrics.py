"""Prometheus metrics for the shop search service."""

from __future__ import annotations

import re
import time
from collections.abc import Callable
from functools import lru_cache

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# ==============================================================================
# HTTP METRICS
# ==============================================================================

http_requests_total = Counter(
    "clipper_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "clipper_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# ==============================================================================
# SEARCH METRICS
# ==============================================================================

shop_search_total = Counter(
    "shop_search_total",
    "Completed shop searches by outcome",
    ["outcome"],  # ai, clarification, ai_failed, manual, unfiltered
)

shop_search_results_empty_total = Counter(
    "shop_search_results_empty_total",
    "Searches that matched no shops",
)

shop_search_interpreter_seconds = Histogram(
    "shop_search_interpreter_seconds",
    "Latency of free-text query interpretation",
    ["status"],  # ok, error
    buckets=(0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 20.0),
)


def track_search(outcome: str, result_count: int) -> None:
    shop_search_total.labels(outcome=outcome).inc()
    if result_count == 0:
        shop_search_results_empty_total.inc()


@lru_cache(maxsize=2048)
def normalize_endpoint(path: str) -> str:
    """
    Collapse ID path segments to keep label cardinality low.

        /v1/shops/3 -> /v1/shops/{id}
    """
    path = re.sub(r"/\d+", "/{id}", path)
    path = re.sub(r"/[a-zA-Z0-9_-]{20,}", "/{id}", path)
    return path


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to track HTTP request metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        endpoint = normalize_endpoint(request.url.path)
        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            http_requests_total.labels(method=method, endpoint=endpoint, status="500").inc()
            raise
        finally:
            duration = time.perf_counter() - start_time
            http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)

        http_requests_total.labels(
            method=method, endpoint=endpoint, status=str(response.status_code)
        ).inc()
        return response


def get_metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "PrometheusMiddleware",
    "get_metrics",
    "normalize_endpoint",
    "shop_search_interpreter_seconds",
    "shop_search_total",
    "track_search",
]
