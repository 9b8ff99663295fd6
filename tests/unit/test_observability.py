from __future__ import annotations

import json

from fastapi import FastAPI
from fastapi.testclient import TestClient
from opentelemetry import trace

from fieldreports.core.config import Settings
from fieldreports.obs import (
    EXPORT_COUNTER,
    REPORT_MUTATION_COUNTER,
    AuditLogRecord,
    AuditMiddleware,
    PrometheusMiddleware,
    analysis_span,
    initialise_tracing,
    inject_traceparent,
    metrics_router,
    record_export,
    record_report_mutation,
)
from fieldreports.obs.audit import _mask_value


def _sample(counter, **labels: str) -> float:  # type: ignore[no-untyped-def]
    family = next(iter(counter.collect()))
    for sample in family.samples:
        if sample.name.endswith("_total") and sample.labels == labels:
            return sample.value
    return 0.0


def test_metrics_endpoint_exposes_counters() -> None:
    app = FastAPI()
    app.add_middleware(PrometheusMiddleware)
    app.include_router(metrics_router)

    client = TestClient(app)
    response = client.get("/metrics")

    assert response.status_code == 200
    assert "http_requests_total" in response.text
    assert "field_report_mutations_total" in response.text


def test_domain_counters_increment() -> None:
    mutations_before = _sample(REPORT_MUTATION_COUNTER, operation="create", outcome="error")
    exports_before = _sample(EXPORT_COUNTER, format="pdf")

    record_report_mutation("create", "error")
    record_export("pdf")

    assert _sample(REPORT_MUTATION_COUNTER, operation="create", outcome="error") == mutations_before + 1
    assert _sample(EXPORT_COUNTER, format="pdf") == exports_before + 1


def test_audit_masking_hides_banking_details() -> None:
    masked = _mask_value(
        {
            "account_number": "0123456789",
            "account_name": "Ada Officer",
            "email": "ada@example.com",
            "items": [{"location": "Kano", "cost": 500}],
        }
    )

    assert masked["account_number"] == "***6789"
    assert masked["account_name"] == "***"
    assert masked["email"] == "a***@example.com"
    assert masked["items"] == [{"location": "Kano", "cost": 500}]


def test_audit_middleware_archives_mutations(audit_s3_client) -> None:  # type: ignore[no-untyped-def]
    settings = Settings(audit_log_bucket="audit-test", audit_log_prefix="records/")
    app = FastAPI()
    app.add_middleware(AuditMiddleware, settings=settings, s3_client_factory=lambda: audit_s3_client)

    @app.post("/echo")
    def echo(payload: dict) -> dict:  # type: ignore[type-arg]
        return payload

    @app.get("/echo")
    def read_echo() -> dict[str, str]:
        return {"status": "ok"}

    client = TestClient(app)
    client.get("/echo")
    response = client.post("/echo", json={"account_number": "0123456789", "bank_name": "First Bank"})

    assert response.json()["account_number"] == "0123456789"
    assert response.headers["X-Request-ID"]
    objects = audit_s3_client.buckets["audit-test"]
    assert len(objects) == 1
    (body,) = objects.values()
    lines = body.decode("utf-8").strip().splitlines()
    assert len(lines) == 1
    record = json.loads(lines[0])
    assert record["method"] == "POST"
    assert record["body"] == {"account_number": "***6789", "bank_name": "First Bank"}


def test_audit_record_serialises_duration() -> None:
    record = AuditLogRecord(
        timestamp="2024-01-01T00:00:00+00:00",
        request_id="req-1",
        method="DELETE",
        path="/api/reports/1",
        status=204,
        duration_ms=12.3456,
        user_id="user-1",
        ip_address=None,
        body=None,
    )

    assert json.loads(record.to_json())["duration_ms"] == 12.35


def test_analysis_span_propagates_traceparent() -> None:
    initialise_tracing(service_name="unit-test-service", instrument_logging=False)

    with analysis_span("analytics.patterns", reports=3) as span:
        carrier = inject_traceparent({"Content-Type": "application/json"})
        trace_id = span.get_span_context().trace_id

    assert carrier["Content-Type"] == "application/json"
    traceparent = carrier.get("traceparent")
    assert traceparent is not None
    assert traceparent.split("-")[1] == format(trace_id, "032x")
    assert trace.get_current_span().get_span_context().trace_id != trace_id
