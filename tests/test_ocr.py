from datetime import date
from decimal import Decimal

import pytest

from models import ChargeKind, InvoiceStatus, OcrStatus
from services import ocr_service, storage
from services.errors import ConflictError, NotFoundError, ValidationError


def _record(db, tenant_id, confidence="92.5", amount=Decimal("85000"), reference="Agua"):
    ocr_log = ocr_service.record_ocr_result(
        db,
        tenant_id,
        file_url="https://files.example.com/agua.pdf",
        provider="textract",
        confidence=Decimal(confidence),
        extracted_amount=amount,
        extracted_reference=reference,
        period_start=date(2024, 1, 1),
        period_end=date(2024, 1, 31),
    )
    db.commit()
    return ocr_log


def test_confidence_threshold(db, seed):
    assert _record(db, seed["tenant_id"], confidence="80.01").status == OcrStatus.OK
    assert _record(db, seed["tenant_id"], confidence="80").status == OcrStatus.NEEDS_REVIEW


def test_failure_is_logged(db, seed):
    ocr_log = ocr_service.record_ocr_failure(
        db, seed["tenant_id"], "https://files.example.com/x.pdf", "vision", "Unreadable"
    )

    assert ocr_log.status == OcrStatus.ERROR
    assert ocr_log.message == "Unreadable"


def test_approve_adds_other_charge(db, seed, active_invoices):
    contract, invoices = active_invoices(rent_amount=Decimal("1000000"))
    ocr_log = _record(db, seed["tenant_id"], confidence="60")

    charge, totals = ocr_service.approve_ocr_charge(db, seed["tenant_id"], ocr_log.id, invoices[0].id)

    assert charge.kind == ChargeKind.OTHER
    assert charge.description == "Cargo adicional - Agua"
    assert charge.amount == Decimal("85000.00")
    assert totals.total == Decimal("1085000.00")
    assert storage.get_ocr_log(db, ocr_log.id, seed["tenant_id"]).status == OcrStatus.OK


def test_approve_with_overrides(db, seed, active_invoices):
    contract, invoices = active_invoices(rent_amount=Decimal("1000"))
    ocr_log = _record(db, seed["tenant_id"], reference=None)

    charge, totals = ocr_service.approve_ocr_charge(
        db, seed["tenant_id"], ocr_log.id, invoices[0].id, description="Gas enero", amount=Decimal("40")
    )

    assert charge.description == "Gas enero"
    assert totals.total == Decimal("1040.00")


def test_approve_without_amount_is_rejected(db, seed, active_invoices):
    contract, invoices = active_invoices()
    ocr_log = _record(db, seed["tenant_id"], amount=None)

    with pytest.raises(ValidationError):
        ocr_service.approve_ocr_charge(db, seed["tenant_id"], ocr_log.id, invoices[0].id)


def test_approve_is_tenant_scoped(db, seed, active_invoices):
    contract, invoices = active_invoices()
    ocr_log = _record(db, seed["tenant_id"])

    with pytest.raises(NotFoundError):
        ocr_service.approve_ocr_charge(db, seed["other_tenant_id"], ocr_log.id, invoices[0].id)


def test_create_invoice_from_ocr(db, seed, make_contract):
    contract = make_contract()
    ocr_log = _record(db, seed["tenant_id"], reference=None)

    invoice = ocr_service.create_invoice_from_ocr(
        db, seed["tenant_id"], ocr_log.id, contract.id, today=date(2024, 2, 10)
    )
    db.commit()

    assert invoice.number == f"{contract.number}-OCR-{ocr_log.id:06d}"
    assert invoice.issue_date == date(2024, 2, 10)
    assert invoice.due_date == date(2024, 2, 25)
    assert invoice.total_amount == Decimal("85000.00")
    assert invoice.status == InvoiceStatus.ISSUED
    assert invoice.charges[0].description == "Cargo adicional - Servicios"

    with pytest.raises(ConflictError):
        ocr_service.create_invoice_from_ocr(
            db, seed["tenant_id"], ocr_log.id, contract.id, today=date(2024, 2, 10)
        )
