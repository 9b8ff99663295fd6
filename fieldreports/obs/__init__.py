"""Observability utilities."""

from .audit import AuditLogRecord, AuditMiddleware
from .metrics import (
    EXPORT_COUNTER,
    INFERENCE_FALLBACK_COUNTER,
    REPORT_MUTATION_COUNTER,
    REQUEST_COUNTER,
    REQUEST_ERROR_COUNTER,
    REQUEST_LATENCY_SECONDS,
    PrometheusMiddleware,
    metrics_router,
    record_export,
    record_inference_fallback,
    record_report_mutation,
)
from .tracing import (
    analysis_span,
    initialise_tracing,
    inject_traceparent,
    instrument_fastapi_app,
    instrument_sqlalchemy_engine,
)

__all__ = [
    "AuditLogRecord",
    "AuditMiddleware",
    "EXPORT_COUNTER",
    "INFERENCE_FALLBACK_COUNTER",
    "PrometheusMiddleware",
    "REPORT_MUTATION_COUNTER",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "analysis_span",
    "initialise_tracing",
    "inject_traceparent",
    "instrument_fastapi_app",
    "instrument_sqlalchemy_engine",
    "metrics_router",
    "record_export",
    "record_inference_fallback",
    "record_report_mutation",
]
