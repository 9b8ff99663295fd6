from __future__ import annotations

from decimal import Decimal

from fastapi.testclient import TestClient


def _payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "report_type": "verification",
        "report_date": "2024-05-02",
        "description": "Verified three branches",
        "account_number": "0123456789",
        "account_name": "Ada Officer",
        "bank_name": "First Bank",
        "items": [
            {"location": "A", "transportation": "Bus", "cost": "500"},
            {"location": "B", "transportation": "Keke", "cost": "300"},
        ],
    }
    payload.update(overrides)
    return payload


def _create(client: TestClient, headers: dict[str, str], **overrides: object) -> dict:  # type: ignore[type-arg]
    response = client.post("/api/reports", json=_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_and_list_reports(client: TestClient, auth_headers: dict[str, str]) -> None:
    created = _create(client, auth_headers)

    assert Decimal(created["total_cost"]) == Decimal("800")
    assert [item["location"] for item in created["items"]] == ["A", "B"]
    assert created["report_type"] == "verification"

    response = client.get("/api/reports", headers=auth_headers)
    assert response.status_code == 200
    assert [report["id"] for report in response.json()] == [created["id"]]


def test_incomplete_items_are_dropped(client: TestClient, auth_headers: dict[str, str]) -> None:
    created = _create(
        client,
        auth_headers,
        items=[
            {"location": "A", "transportation": "Bus", "cost": "500"},
            {"location": "", "transportation": "Bus", "cost": "100"},
        ],
    )

    assert len(created["items"]) == 1
    assert Decimal(created["total_cost"]) == Decimal("500")


def test_validation_errors_return_422(client: TestClient, auth_headers: dict[str, str]) -> None:
    missing_bank = client.post("/api/reports", json=_payload(bank_name=""), headers=auth_headers)
    no_items = client.post("/api/reports", json=_payload(items=[]), headers=auth_headers)
    bad_type = client.post("/api/reports", json=_payload(report_type="audit"), headers=auth_headers)

    assert missing_bank.status_code == 422
    assert missing_bank.json()["detail"]["fields"] == ["bank_name"]
    assert no_items.status_code == 422
    assert no_items.json()["detail"]["message"] == "Please add at least one complete journey record"
    assert bad_type.status_code == 422
    assert client.get("/api/reports", headers=auth_headers).json() == []


def test_anonymous_requests_are_rejected(client: TestClient) -> None:
    assert client.get("/api/reports").status_code == 401
    assert client.post("/api/reports", json=_payload()).status_code == 401
    assert client.get("/api/reports", headers={"Authorization": "Bearer not-a-token"}).status_code == 401


def test_update_replaces_items(client: TestClient, auth_headers: dict[str, str]) -> None:
    created = _create(client, auth_headers)

    response = client.put(
        f"/api/reports/{created['id']}",
        json=_payload(
            report_type="recovery",
            items=[{"location": "C", "transportation": "Okada", "cost": "150.75"}],
        ),
        headers=auth_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["report_type"] == "recovery"
    assert [item["location"] for item in body["items"]] == ["C"]
    assert Decimal(body["total_cost"]) == Decimal("150.75")


def test_reports_are_private_to_their_owner(
    client: TestClient, auth_headers: dict[str, str], other_auth_headers: dict[str, str]
) -> None:
    created = _create(client, auth_headers)

    assert client.get(f"/api/reports/{created['id']}", headers=other_auth_headers).status_code == 404
    assert client.delete(f"/api/reports/{created['id']}", headers=other_auth_headers).status_code == 404
    assert client.get("/api/reports", headers=other_auth_headers).json() == []


def test_delete_report(client: TestClient, auth_headers: dict[str, str]) -> None:
    created = _create(client, auth_headers)

    response = client.delete(f"/api/reports/{created['id']}", headers=auth_headers)

    assert response.status_code == 204
    assert client.get(f"/api/reports/{created['id']}", headers=auth_headers).status_code == 404
    assert client.get("/api/reports", headers=auth_headers).json() == []


def test_download_report_pdf(client: TestClient, auth_headers: dict[str, str]) -> None:
    created = _create(client, auth_headers, report_type="post-disbursement")

    response = client.get(f"/api/reports/{created['id']}/pdf", headers=auth_headers)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == (
        'attachment; filename="post-disbursement-report-2024-05-02.pdf"'
    )
    assert response.content.startswith(b"%PDF")


def test_mutations_are_audited_with_masked_account(
    client: TestClient, auth_headers: dict[str, str], audit_s3_client
) -> None:  # type: ignore[no-untyped-def]
    _create(client, auth_headers)

    objects = audit_s3_client.buckets["fieldreports-audit-logs"]
    (body,) = objects.values()
    records = [line for line in body.decode("utf-8").splitlines() if '"/api/reports"' in line]
    assert records
    assert "0123456789" not in records[-1]
    assert "***6789" in records[-1]
    assert '"user_id": null' not in records[-1]
