from datetime import date
from decimal import Decimal

import pytest

from models import ChargeKind, InvoiceStatus
from services.errors import NotFoundError, ValidationError
from services.invoice_service import InvoiceService, due_date_for, month_span


def test_month_span_crosses_year_boundary():
    assert list(month_span(date(2023, 11, 15), date(2024, 2, 1))) == [
        (2023, 11), (2023, 12), (2024, 1), (2024, 2)
    ]


def test_due_date_is_clamped_to_month_end():
    assert due_date_for(2024, 2, 30) == date(2024, 2, 29)
    assert due_date_for(2023, 2, 30) == date(2023, 2, 28)
    assert due_date_for(2024, 4, 30) == date(2024, 4, 30)
    assert due_date_for(2024, 1, 5) == date(2024, 1, 5)


def test_three_month_contract_yields_three_rent_invoices(db, seed, make_contract):
    contract = make_contract(rent_amount=Decimal("1500000"), payment_day=5)

    invoices = InvoiceService.generate_contract_invoices(db, contract.id, seed["tenant_id"])
    db.commit()

    assert len(invoices) == 3
    assert [inv.number for inv in invoices] == [
        f"{contract.number}-001", f"{contract.number}-002", f"{contract.number}-003"
    ]
    assert [inv.issue_date for inv in invoices] == [
        date(2024, 1, 1), date(2024, 2, 1), date(2024, 3, 1)
    ]
    assert [inv.due_date for inv in invoices] == [
        date(2024, 1, 5), date(2024, 2, 5), date(2024, 3, 5)
    ]
    for invoice in invoices:
        assert invoice.total_amount == Decimal("1500000.00")
        assert invoice.subtotal == Decimal("1500000.00")
        assert invoice.amount_paid == Decimal("0.00")
        assert invoice.status == InvoiceStatus.ISSUED
        assert len(invoice.charges) == 1
        assert invoice.charges[0].kind == ChargeKind.RENT

    assert invoices[0].charges[0].description == "Canon de Arrendamiento - enero de 2024"
    assert contract.invoices_generated is True


def test_partial_months_count_as_whole_months(db, seed, make_contract):
    contract = make_contract(
        start_date=date(2024, 1, 31), end_date=date(2024, 4, 1), payment_day=30
    )

    invoices = InvoiceService.generate_contract_invoices(db, contract.id, seed["tenant_id"])

    assert [inv.due_date for inv in invoices] == [
        date(2024, 1, 30), date(2024, 2, 29), date(2024, 3, 30), date(2024, 4, 30)
    ]


def test_generation_is_idempotent(db, seed, make_contract):
    contract = make_contract()
    first = InvoiceService.generate_contract_invoices(db, contract.id, seed["tenant_id"])
    db.commit()

    second = InvoiceService.generate_contract_invoices(db, contract.id, seed["tenant_id"])

    assert [inv.id for inv in second] == [inv.id for inv in first]
    assert len(InvoiceService.list_invoices(db, seed["tenant_id"], contract_id=contract.id)) == 3


def test_generation_is_tenant_scoped(db, seed, make_contract):
    contract = make_contract()

    with pytest.raises(NotFoundError):
        InvoiceService.generate_contract_invoices(db, contract.id, seed["other_tenant_id"])


def test_generation_rejects_inverted_dates(db, seed, make_contract):
    contract = make_contract()
    contract.end_date = date(2023, 12, 1)
    db.commit()

    with pytest.raises(ValidationError):
        InvoiceService.generate_contract_invoices(db, contract.id, seed["tenant_id"])
