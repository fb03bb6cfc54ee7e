from datetime import date
from decimal import Decimal

import pytest

from models import ContractStatus, LateFeeType
from services import storage
from services.contract_service import ContractService
from services.errors import ConflictError, NotFoundError, ValidationError
from services.payment_service import PaymentService


def test_create_defaults_to_draft(make_contract):
    contract = make_contract()

    assert contract.status == ContractStatus.DRAFT
    assert contract.late_fee_type == LateFeeType.NONE
    assert contract.rent_amount == Decimal("1500000.00")
    assert contract.invoices_generated is False


@pytest.mark.parametrize("overrides", [
    {"payment_day": 31},
    {"payment_day": 0},
    {"rent_amount": Decimal("0")},
    {"start_date": date(2024, 5, 1), "end_date": date(2024, 4, 1)},
    {"status": ContractStatus.ACTIVE},
])
def test_create_rejects_bad_terms(make_contract, overrides):
    with pytest.raises(ValidationError):
        make_contract(**overrides)


def test_create_requires_references_in_same_tenant(db, seed, make_contract):
    with pytest.raises(NotFoundError):
        make_contract(property_id=9999)


def test_duplicate_number_conflicts(make_contract):
    make_contract(number="CT-X")

    with pytest.raises(ConflictError):
        make_contract(number="CT-X")


def test_activation_generates_invoices_once(db, seed, make_contract):
    contract = make_contract()

    contract, invoices, created = ContractService.activate_contract(db, seed["tenant_id"], contract.id)
    db.commit()
    assert contract.status == ContractStatus.ACTIVE
    assert created == 3
    assert len(invoices) == 3

    contract, invoices, created = ContractService.activate_contract(db, seed["tenant_id"], contract.id)
    db.commit()
    assert created == 0
    assert len(invoices) == 3


def test_overlapping_active_contracts_conflict(db, seed, make_contract, active_invoices):
    active_invoices(start_date=date(2024, 1, 1), end_date=date(2024, 6, 30))
    overlapping = make_contract(start_date=date(2024, 6, 30), end_date=date(2024, 12, 31))

    with pytest.raises(ConflictError):
        ContractService.activate_contract(db, seed["tenant_id"], overlapping.id)
    with pytest.raises(ConflictError):
        make_contract(
            start_date=date(2024, 3, 1), end_date=date(2024, 4, 30), status=ContractStatus.SIGNED
        )

    after = make_contract(start_date=date(2024, 7, 1), end_date=date(2024, 12, 31))
    ContractService.activate_contract(db, seed["tenant_id"], after.id)
    db.commit()
    assert len(storage.list_contracts(db, seed["tenant_id"], status=ContractStatus.ACTIVE)) == 2


def test_expired_contract_cannot_be_activated(db, seed, make_contract):
    contract = make_contract()
    ContractService.update_contract(db, seed["tenant_id"], contract.id, {"status": "expired"})
    db.commit()

    with pytest.raises(ValidationError):
        ContractService.activate_contract(db, seed["tenant_id"], contract.id)


def test_billing_terms_freeze_after_generation(db, seed, active_invoices):
    contract, invoices = active_invoices()

    with pytest.raises(ValidationError):
        ContractService.update_contract(db, seed["tenant_id"], contract.id, {"rent_amount": Decimal("2000000")})

    updated = ContractService.update_contract(
        db, seed["tenant_id"], contract.id, {"status": ContractStatus.EXPIRING}
    )
    assert updated.status == ContractStatus.EXPIRING


def test_delete_contract(db, seed, active_invoices):
    contract, invoices = active_invoices(rent_amount=Decimal("1000"))
    PaymentService.create_payment(
        db, seed["tenant_id"], invoices[0].id, Decimal("100"), date(2024, 1, 2), "cash"
    )
    with pytest.raises(ConflictError):
        ContractService.delete_contract(db, seed["tenant_id"], contract.id)

    unpaid = ContractService.activate_contract(
        db,
        seed["tenant_id"],
        ContractService.create_contract(db, seed["tenant_id"], {
            "number": "CT-DEL",
            "property_id": seed["property_id"],
            "tenant_contact_id": seed["renter_id"],
            "owner_contact_id": seed["owner_id"],
            "start_date": date(2025, 1, 1),
            "end_date": date(2025, 2, 28),
            "rent_amount": Decimal("1000"),
            "payment_day": 10,
        }).id,
    )[0]
    db.commit()

    ContractService.delete_contract(db, seed["tenant_id"], unpaid.id)
    db.commit()
    with pytest.raises(NotFoundError):
        storage.get_contract(db, unpaid.id, seed["tenant_id"])
    assert storage.list_invoices_for_contract(db, unpaid.id, seed["tenant_id"]) == []
