"""Prometheus metrics for the API and report services."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_LATENCY_SECONDS = Histogram(
    "http_request_latency_seconds",
    "Latency of HTTP requests in seconds.",
    labelnames=("method", "path"),
)
REQUEST_COUNTER = Counter(
    "http_requests_total",
    "Total number of HTTP requests processed.",
    labelnames=("method", "path", "status"),
)
REQUEST_ERROR_COUNTER = Counter(
    "http_request_errors_total",
    "Total number of HTTP requests that resulted in server errors.",
    labelnames=("method", "path", "status"),
)
REPORT_MUTATION_COUNTER = Counter(
    "field_report_mutations_total",
    "Report create/update/delete attempts by outcome.",
    labelnames=("operation", "outcome"),
)
INFERENCE_FALLBACK_COUNTER = Counter(
    "inference_fallbacks_total",
    "Analysis requests answered by the local fallback instead of the inference endpoint.",
    labelnames=("provider",),
)
EXPORT_COUNTER = Counter(
    "report_exports_total",
    "Documents rendered for download.",
    labelnames=("format",),
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware that records request metrics for Prometheus scraping."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:  # type: ignore[override]
        method = request.method
        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path)
        start_time = time.perf_counter()
        status = "500"

        try:
            response = await call_next(request)
            route = request.scope.get("route")
            path = getattr(route, "path", path)
            status = str(response.status_code)
            if response.status_code >= 500:
                REQUEST_ERROR_COUNTER.labels(method=method, path=path, status=status).inc()
            return response
        except Exception:
            REQUEST_ERROR_COUNTER.labels(method=method, path=path, status="500").inc()
            raise
        finally:
            latency = time.perf_counter() - start_time
            REQUEST_LATENCY_SECONDS.labels(method=method, path=path).observe(latency)
            REQUEST_COUNTER.labels(method=method, path=path, status=status).inc()


metrics_router = APIRouter(tags=["observability"])


@metrics_router.get("/metrics", include_in_schema=False)
def metrics_endpoint() -> Response:
    """Expose Prometheus metrics for scraping."""
    payload = generate_latest()
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


def record_report_mutation(operation: str, outcome: str) -> None:
    REPORT_MUTATION_COUNTER.labels(operation=operation, outcome=outcome).inc()


def record_inference_fallback(provider: str) -> None:
    INFERENCE_FALLBACK_COUNTER.labels(provider=provider).inc()


def record_export(export_format: str) -> None:
    EXPORT_COUNTER.labels(format=export_format).inc()


__all__ = [
    "EXPORT_COUNTER",
    "INFERENCE_FALLBACK_COUNTER",
    "PrometheusMiddleware",
    "REPORT_MUTATION_COUNTER",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "metrics_endpoint",
    "metrics_router",
    "record_export",
    "record_inference_fallback",
    "record_report_mutation",
]
