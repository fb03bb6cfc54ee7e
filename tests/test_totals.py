from datetime import date
from decimal import Decimal

import pytest

from models import ChargeKind, InvoiceStatus, LateFeeType
from services import storage
from services.errors import ConflictError, NotFoundError, ValidationError
from services.invoice_service import InvoiceService
from services.payment_service import PaymentService


def _assert_totals_invariant(invoice):
    subtotal = sum(
        (c.amount for c in invoice.charges if c.kind != ChargeKind.LATE_FEE), Decimal("0")
    )
    late_fee = sum(
        (c.amount for c in invoice.charges if c.kind == ChargeKind.LATE_FEE), Decimal("0")
    )
    assert invoice.subtotal == subtotal
    assert invoice.late_fee == late_fee
    assert invoice.total_amount == invoice.subtotal + invoice.tax + invoice.other_charges + invoice.late_fee
    assert invoice.amount_paid == sum((p.amount for p in invoice.payments), Decimal("0"))


def test_recalculate_is_idempotent(db, seed, active_invoices):
    contract, invoices = active_invoices(
        rent_amount=Decimal("1000000"),
        late_fee_type=LateFeeType.PERCENT,
        late_fee_value=Decimal("10"),
    )
    invoice = invoices[0]
    InvoiceService.apply_late_fee(db, invoice.id, seed["tenant_id"])

    first = InvoiceService.recalculate_totals(db, invoice.id, seed["tenant_id"])
    second = InvoiceService.recalculate_totals(db, invoice.id, seed["tenant_id"])

    assert first == second
    assert second.total == Decimal("1100000.00")
    invoice = storage.get_invoice(db, invoice.id, seed["tenant_id"])
    assert invoice.status == InvoiceStatus.OVERDUE
    _assert_totals_invariant(invoice)


def test_charges_drive_totals(db, seed, active_invoices):
    contract, invoices = active_invoices(rent_amount=Decimal("1000"))
    invoice = invoices[0]

    charge, totals = InvoiceService.add_charge(
        db, seed["tenant_id"], invoice.id, "Cargo adicional - Agua", Decimal("85.50")
    )
    assert totals.total == Decimal("1085.50")

    credit, totals = InvoiceService.add_charge(
        db, seed["tenant_id"], invoice.id, "Descuento", Decimal("-100"), kind=ChargeKind.ADJUSTMENT
    )
    assert totals.subtotal == Decimal("985.50")

    charge, totals = InvoiceService.update_charge(
        db, seed["tenant_id"], invoice.id, charge.id, amount=Decimal("90")
    )
    assert totals.total == Decimal("990.00")

    totals = InvoiceService.delete_charge(db, seed["tenant_id"], invoice.id, credit.id)
    assert totals.total == Decimal("1090.00")

    invoice = storage.get_invoice(db, invoice.id, seed["tenant_id"])
    _assert_totals_invariant(invoice)


def test_only_adjustments_may_be_negative(db, seed, active_invoices):
    contract, invoices = active_invoices()

    with pytest.raises(ValidationError):
        InvoiceService.add_charge(db, seed["tenant_id"], invoices[0].id, "Bad", Decimal("-5"))


def test_raising_total_turns_paid_invoice_partial(db, seed, active_invoices):
    contract, invoices = active_invoices(rent_amount=Decimal("1000"))
    invoice = invoices[0]
    PaymentService.create_payment(
        db, seed["tenant_id"], invoice.id, Decimal("1000"), date(2024, 1, 2), "transfer"
    )

    InvoiceService.add_charge(db, seed["tenant_id"], invoice.id, "Reparación", Decimal("200"))

    invoice = storage.get_invoice(db, invoice.id, seed["tenant_id"])
    assert invoice.status == InvoiceStatus.PARTIAL
    _assert_totals_invariant(invoice)


def test_create_manual_invoice(db, seed, make_contract):
    contract = make_contract()

    invoice = InvoiceService.create_invoice(
        db,
        tenant_id=seed["tenant_id"],
        contract_id=contract.id,
        number="MANUAL-1",
        issue_date=date(2024, 2, 10),
        due_date=date(2024, 2, 25),
        charges=[
            {"description": "Reparación", "amount": Decimal("120000")},
            {"description": "Pintura", "amount": "30000", "kind": "other"},
        ],
        tax=Decimal("5000"),
    )
    db.commit()

    assert invoice.subtotal == Decimal("150000.00")
    assert invoice.total_amount == Decimal("155000.00")
    assert invoice.status == InvoiceStatus.ISSUED
    assert invoice.tenant_contact_id == seed["renter_id"]

    with pytest.raises(ConflictError):
        InvoiceService.create_invoice(
            db,
            tenant_id=seed["tenant_id"],
            contract_id=contract.id,
            number="MANUAL-1",
            issue_date=date(2024, 2, 10),
            due_date=date(2024, 2, 25),
            charges=[{"description": "Otro", "amount": Decimal("1")}],
        )


def test_create_invoice_requires_charges(db, seed, make_contract):
    contract = make_contract()

    with pytest.raises(ValidationError):
        InvoiceService.create_invoice(
            db,
            tenant_id=seed["tenant_id"],
            contract_id=contract.id,
            number="EMPTY",
            issue_date=date(2024, 2, 10),
            due_date=date(2024, 2, 25),
            charges=[],
        )


def test_cancel_and_delete(db, seed, active_invoices):
    contract, invoices = active_invoices(rent_amount=Decimal("1000"))
    first, second = invoices[0], invoices[1]

    cancelled = InvoiceService.cancel_invoice(db, seed["tenant_id"], first.id)
    assert cancelled.status == InvoiceStatus.CANCELLED
    with pytest.raises(ValidationError):
        InvoiceService.add_charge(db, seed["tenant_id"], first.id, "Nope", Decimal("1"))

    PaymentService.create_payment(
        db, seed["tenant_id"], second.id, Decimal("100"), date(2024, 2, 1), "cash"
    )
    with pytest.raises(ConflictError):
        InvoiceService.cancel_invoice(db, seed["tenant_id"], second.id)
    with pytest.raises(ConflictError):
        InvoiceService.delete_invoice(db, seed["tenant_id"], second.id)

    InvoiceService.delete_invoice(db, seed["tenant_id"], second.id, cascade_payments=True)
    with pytest.raises(NotFoundError):
        storage.get_invoice(db, second.id, seed["tenant_id"])
    assert PaymentService.list_payments(db, seed["tenant_id"], invoice_id=second.id) == []


def test_summary(db, seed, active_invoices):
    contract, invoices = active_invoices(rent_amount=Decimal("1000"))
    PaymentService.create_payment(
        db, seed["tenant_id"], invoices[0].id, Decimal("1000"), date(2024, 1, 2), "cash"
    )
    PaymentService.create_payment(
        db, seed["tenant_id"], invoices[1].id, Decimal("300"), date(2024, 2, 2), "cash"
    )

    summary = InvoiceService.summarize(db, seed["tenant_id"])

    assert summary["total_invoices"] == 3
    assert summary["total_billed"] == "3000.00"
    assert summary["total_collected"] == "1300.00"
    assert summary["total_outstanding"] == "1700.00"
    assert summary["by_status"]["paid"] == {"count": 1, "amount": "1000.00"}
    assert summary["by_status"]["partial"]["count"] == 1
    assert summary["by_status"]["issued"]["count"] == 1
    assert InvoiceService.summarize(db, seed["other_tenant_id"])["total_invoices"] == 0


def test_update_invoice_fields_is_tenant_scoped(db, seed, active_invoices):
    contract, invoices = active_invoices()

    storage.update_invoice_fields(db, invoices[0].id, seed["tenant_id"], due_date=date(2024, 1, 10))
    assert storage.get_invoice(db, invoices[0].id, seed["tenant_id"]).due_date == date(2024, 1, 10)

    with pytest.raises(NotFoundError):
        storage.update_invoice_fields(db, invoices[0].id, seed["other_tenant_id"], due_date=date(2024, 1, 11))


def test_charge_changes_cannot_drop_total_below_amount_paid(db, seed, active_invoices):
    contract, invoices = active_invoices(rent_amount=Decimal("1000"))
    invoice = invoices[0]
    extra, _ = InvoiceService.add_charge(db, seed["tenant_id"], invoice.id, "Reparación", Decimal("500"))
    PaymentService.create_payment(
        db, seed["tenant_id"], invoice.id, Decimal("1500"), date(2024, 1, 2), "transfer"
    )

    with pytest.raises(ValidationError) as excinfo:
        InvoiceService.delete_charge(db, seed["tenant_id"], invoice.id, extra.id)
    assert "1500.00 already paid" in excinfo.value.message

    with pytest.raises(ValidationError):
        InvoiceService.update_charge(db, seed["tenant_id"], invoice.id, extra.id, amount=Decimal("100"))

    invoice = storage.get_invoice(db, invoice.id, seed["tenant_id"])
    assert invoice.total_amount == Decimal("1500.00")
    assert invoice.amount_paid == Decimal("1500.00")
    assert invoice.status == InvoiceStatus.PAID
    assert len(invoice.charges) == 2
    _assert_totals_invariant(invoice)


def test_adjustment_cannot_make_total_negative(db, seed, active_invoices):
    contract, invoices = active_invoices(rent_amount=Decimal("1000"))
    invoice = invoices[0]

    with pytest.raises(ValidationError):
        InvoiceService.add_charge(
            db, seed["tenant_id"], invoice.id, "Descuento", Decimal("-5000"), kind=ChargeKind.ADJUSTMENT
        )

    invoice = storage.get_invoice(db, invoice.id, seed["tenant_id"])
    assert invoice.total_amount == Decimal("1000.00")
    assert invoice.status == InvoiceStatus.ISSUED
    assert len(invoice.charges) == 1

    _, totals = InvoiceService.add_charge(
        db, seed["tenant_id"], invoice.id, "Descuento", Decimal("-1000"), kind=ChargeKind.ADJUSTMENT
    )
    assert totals.total == Decimal("0.00")
    assert storage.get_invoice(db, invoice.id, seed["tenant_id"]).status == InvoiceStatus.PAID
