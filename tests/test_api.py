from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from jose import jwt

import config
from database import get_session
from main import app
from models import Contact
from services.invoice_service import InvoiceService
from utils import email


def _token(tenant_id, role="manager"):
    claims = {"id": 1, "role": role}
    if tenant_id is not None:
        claims["tenant_id"] = tenant_id
    return jwt.encode(claims, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


@pytest.fixture
def client(session_factory):
    def override_get_session():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def headers(seed):
    return {"Authorization": f"Bearer {_token(seed['tenant_id'])}"}


def _contract_body(seed, **overrides):
    body = {
        "number": "CT-API-1",
        "property_id": seed["property_id"],
        "tenant_contact_id": seed["renter_id"],
        "owner_contact_id": seed["owner_id"],
        "start_date": "2024-01-01",
        "end_date": "2024-03-31",
        "rent_amount": "1000.00",
        "payment_day": 5,
    }
    body.update(overrides)
    return body


def _activated(client, headers, seed, **overrides):
    created = client.post("/api/contracts", json=_contract_body(seed, **overrides), headers=headers)
    assert created.status_code == 201, created.text
    activated = client.post(f"/api/contracts/{created.json()['id']}/activate", headers=headers)
    assert activated.status_code == 200, activated.text
    return activated.json()


def test_requests_need_a_tenant_bound_token(client, seed):
    assert client.get("/api/invoices").status_code == 401
    bad = {"Authorization": "Bearer not-a-jwt"}
    assert client.get("/api/invoices", headers=bad).status_code == 403
    unbound = {"Authorization": f"Bearer {_token(None)}"}
    assert client.get("/api/invoices", headers=unbound).status_code == 403


def test_activation_and_invoice_listing(client, headers, seed):
    activation = _activated(client, headers, seed)

    assert activation["invoices_created"] == 3
    assert activation["contract"]["status"] == "active"

    listing = client.get("/api/invoices", headers=headers).json()
    assert listing["total"] == 3
    invoice = client.get(f"/api/invoices/{activation['invoice_ids'][0]}", headers=headers).json()
    assert invoice["number"] == "CT-API-1-001"
    assert invoice["total_amount"] == "1000.00"
    assert invoice["balance_due"] == "1000.00"
    assert invoice["status"] == "issued"
    assert invoice["charges"][0]["kind"] == "rent"

    again = client.post(f"/api/contracts/{activation['contract']['id']}/activate", headers=headers).json()
    assert again["invoices_created"] == 0


def test_overlapping_activation_is_a_conflict(client, headers, seed):
    _activated(client, headers, seed)
    created = client.post(
        "/api/contracts",
        json=_contract_body(seed, number="CT-API-2", start_date="2024-03-01", end_date="2024-05-31"),
        headers=headers,
    ).json()

    response = client.post(f"/api/contracts/{created['id']}/activate", headers=headers)

    assert response.status_code == 409


def test_payment_flow(client, headers, seed):
    invoice_id = _activated(client, headers, seed)["invoice_ids"][0]

    first = client.post(
        "/api/payments",
        json={"invoice_id": invoice_id, "amount": "800", "payment_date": "2024-01-04", "method": "transfer"},
        headers=headers,
    )
    assert first.status_code == 201, first.text
    assert first.json()["invoice_status"] == "partial"

    rejected = client.post(
        "/api/payments",
        json={"invoice_id": invoice_id, "amount": "250", "payment_date": "2024-01-04", "method": "transfer"},
        headers=headers,
    )
    assert rejected.status_code == 400
    assert rejected.json()["balance_due"] == "200.00"

    final = client.post(
        "/api/payments",
        json={"invoice_id": invoice_id, "amount": "200", "payment_date": "2024-01-05", "method": "cash"},
        headers=headers,
    )
    assert final.json()["invoice_status"] == "paid"
    assert final.json()["invoice_balance_due"] == "0.00"

    deleted = client.delete(f"/api/payments/{final.json()['id']}", headers=headers)
    assert deleted.json()["invoice_status"] == "partial"
    assert deleted.json()["invoice_amount_paid"] == "800.00"


def test_other_tenant_sees_nothing(client, headers, seed):
    invoice_id = _activated(client, headers, seed)["invoice_ids"][0]
    other = {"Authorization": f"Bearer {_token(seed['other_tenant_id'])}"}

    assert client.get(f"/api/invoices/{invoice_id}", headers=other).status_code == 404
    assert client.get("/api/invoices", headers=other).json()["total"] == 0


def test_charges_recalc_and_summary(client, headers, seed):
    invoice_id = _activated(client, headers, seed)["invoice_ids"][0]

    added = client.post(
        f"/api/invoices/{invoice_id}/charges",
        json={"description": "Cargo adicional - Agua", "amount": "85.50"},
        headers=headers,
    )
    assert added.status_code == 201
    assert added.json()["totals"]["total"] == "1085.50"

    recalc = client.post(f"/api/invoices/{invoice_id}/recalc", headers=headers).json()
    assert recalc["total"] == "1085.50"

    removed = client.delete(
        f"/api/invoices/{invoice_id}/charges/{added.json()['charge']['id']}", headers=headers
    )
    assert removed.json()["total"] == "1000.00"

    summary = client.get("/api/invoices/summary", headers=headers).json()
    assert summary["total_invoices"] == 3
    assert summary["total_billed"] == "3000.00"


def test_delete_invoice_needs_manager_and_cascade(client, headers, seed):
    invoice_id = _activated(client, headers, seed)["invoice_ids"][0]
    client.post(
        "/api/payments",
        json={"invoice_id": invoice_id, "amount": "100", "payment_date": "2024-01-04", "method": "cash"},
        headers=headers,
    )
    renter = {"Authorization": f"Bearer {_token(seed['tenant_id'], role='tenant')}"}

    assert client.delete(f"/api/invoices/{invoice_id}", headers=renter).status_code == 403
    assert client.delete(f"/api/invoices/{invoice_id}", headers=headers).status_code == 409
    response = client.delete(f"/api/invoices/{invoice_id}?cascade_payments=true", headers=headers)
    assert response.status_code == 204
    assert client.get(f"/api/invoices/{invoice_id}", headers=headers).status_code == 404


def test_ocr_review(client, headers, seed):
    invoice_id = _activated(client, headers, seed)["invoice_ids"][0]
    ocr_log = client.post(
        "/api/ocr",
        json={
            "file_url": "https://files.example.com/agua.pdf",
            "provider": "textract",
            "confidence": "95",
            "extracted_amount": "85000",
            "extracted_reference": "Agua",
        },
        headers=headers,
    ).json()
    assert ocr_log["status"] == "ok"

    approved = client.post(
        f"/api/ocr/{ocr_log['id']}/approve", json={"invoice_id": invoice_id}, headers=headers
    )
    assert approved.status_code == 200, approved.text
    assert approved.json()["charge"]["description"] == "Cargo adicional - Agua"
    assert Decimal(approved.json()["totals"]["total"]) == Decimal("86000.00")

    contract_id = client.get(f"/api/invoices/{invoice_id}", headers=headers).json()["contract_id"]
    created = client.post(
        f"/api/ocr/{ocr_log['id']}/create-invoice", json={"contract_id": contract_id}, headers=headers
    )
    assert created.status_code == 201
    assert created.json()["number"] == f"CT-API-1-OCR-{ocr_log['id']:06d}"


def test_invoice_header_update(client, headers, seed):
    invoice_id = _activated(client, headers, seed)["invoice_ids"][0]

    updated = client.patch(
        f"/api/invoices/{invoice_id}",
        json={"tax": "190.00", "other_charges": "10", "due_date": "2024-01-10"},
        headers=headers,
    )
    assert updated.status_code == 200, updated.text
    assert updated.json()["total_amount"] == "1200.00"
    assert updated.json()["due_date"] == "2024-01-10"

    assert client.patch(f"/api/invoices/{invoice_id}", json={"tax": "-1"}, headers=headers).status_code == 422
    early = client.patch(f"/api/invoices/{invoice_id}", json={"due_date": "2023-12-31"}, headers=headers)
    assert early.status_code == 400

    client.post(
        "/api/payments",
        json={"invoice_id": invoice_id, "amount": "1200", "payment_date": "2024-01-04", "method": "cash"},
        headers=headers,
    )
    lowered = client.patch(f"/api/invoices/{invoice_id}", json={"tax": "0"}, headers=headers)
    assert lowered.status_code == 400
    assert "1200.00 already paid" in lowered.json()["detail"]
    invoice = client.get(f"/api/invoices/{invoice_id}", headers=headers).json()
    assert invoice["tax"] == "190.00"
    assert invoice["status"] == "paid"


def test_manual_reminder(client, headers, seed, session_factory, monkeypatch):
    sent = []
    monkeypatch.setattr(email, "send_email", lambda to, name, subject, html: sent.append((to, subject)))
    invoice_id = _activated(client, headers, seed)["invoice_ids"][0]

    response = client.post(f"/api/invoices/{invoice_id}/remind", headers=headers)
    assert response.status_code == 200, response.text
    assert response.json()["kind"] == "due_soon"

    with session_factory() as session:
        InvoiceService.apply_late_fee(session, invoice_id, seed["tenant_id"])
    assert client.post(f"/api/invoices/{invoice_id}/remind", headers=headers).json()["kind"] == "overdue"
    assert sent[0] == ("luis@example.com", "Recordatorio: su factura CT-API-1-001 vence el 2024-01-05")
    assert sent[1] == ("luis@example.com", "Factura CT-API-1-001 vencida")

    with session_factory() as session:
        session.get(Contact, seed["renter_id"]).email = None
        session.commit()
    missing = client.post(f"/api/invoices/{invoice_id}/remind", headers=headers)
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Tenant contact has no email address"
    assert len(sent) == 2


def test_ocr_log_listing(client, headers, seed):
    for confidence in ("95", "50"):
        client.post(
            "/api/ocr",
            json={"file_url": "https://files.example.com/luz.pdf", "provider": "textract", "confidence": confidence},
            headers=headers,
        )

    assert len(client.get("/api/ocr/logs", headers=headers).json()) == 2
    review = client.get("/api/ocr/logs?status=needs_review", headers=headers).json()
    assert [log["status"] for log in review] == ["needs_review"]
    other = {"Authorization": f"Bearer {_token(seed['other_tenant_id'])}"}
    assert client.get("/api/ocr/logs", headers=other).json() == []
