import os
from datetime import date
from decimal import Decimal

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["JWT_SECRET"] = "test-secret"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from database import build_session_factory, init_db
from models import (
    Base, Contact, ContactKind, LateFeeType, Property, Tenant
)
from services.contract_service import ContractService


@pytest.fixture
def engine(request, tmp_path):
    if request.node.get_closest_marker("file_db"):
        # one connection per thread
        engine = create_engine(
            f"sqlite:///{tmp_path / 'billing.db'}",
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seed(db):
    """One organization with an owner, a renter and a property, committed."""
    tenant = Tenant(name="Inmobiliaria Norte")
    other_tenant = Tenant(name="Inmobiliaria Sur")
    db.add_all([tenant, other_tenant])
    db.flush()

    owner = Contact(tenant_id=tenant.id, kind=ContactKind.OWNER, full_name="Ana Propietaria")
    renter = Contact(
        tenant_id=tenant.id,
        kind=ContactKind.TENANT,
        full_name="Luis Arrendatario",
        email="luis@example.com",
    )
    db.add_all([owner, renter])
    db.flush()

    prop = Property(tenant_id=tenant.id, owner_contact_id=owner.id, name="Apto 101")
    db.add(prop)
    db.commit()

    return {
        "tenant_id": tenant.id,
        "other_tenant_id": other_tenant.id,
        "owner_id": owner.id,
        "renter_id": renter.id,
        "property_id": prop.id,
    }


@pytest.fixture
def make_contract(db, seed):
    """Create (and commit) a draft contract; keyword arguments override the defaults."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "number": f"CT-{counter['n']:03d}",
            "property_id": seed["property_id"],
            "tenant_contact_id": seed["renter_id"],
            "owner_contact_id": seed["owner_id"],
            "start_date": date(2024, 1, 1),
            "end_date": date(2024, 3, 31),
            "rent_amount": Decimal("1500000"),
            "payment_day": 5,
            "late_fee_type": LateFeeType.NONE,
        }
        data.update(overrides)
        contract = ContractService.create_contract(db, seed["tenant_id"], data)
        db.commit()
        return contract

    return _make


@pytest.fixture
def active_invoices(db, seed, make_contract):
    """Activate a contract and return (contract, invoices), committed."""

    def _activate(**overrides):
        contract = make_contract(**overrides)
        contract, invoices, _ = ContractService.activate_contract(db, seed["tenant_id"], contract.id)
        db.commit()
        return contract, invoices

    return _activate
