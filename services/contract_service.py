# services/contract_service.py
"""
Contract Service - lease lifecycle rules.

A property may hold at most one contract in an active-family status
(signed, active, expiring) for any given day. Activation expands a
contract into its monthly invoices exactly once.
"""
import logging
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from models import (
     Contact, Contract, ContractStatus, ACTIVE_FAMILY, Invoice, LateFeeType, Payment, Property
)
from services import storage
from services.errors import ConflictError, NotFoundError, ValidationError
from services.invoice_service import InvoiceService
from services.validation import validate_contract_terms
from utils.money import quantize

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
     "number",
     "property_id",
     "tenant_contact_id",
     "owner_contact_id",
     "start_date",
     "end_date",
     "rent_amount",
     "payment_day",
     "late_fee_type",
     "late_fee_value",
     "status",
)

REQUIRED_FIELDS = (
     "number",
     "property_id",
     "tenant_contact_id",
     "owner_contact_id",
     "start_date",
     "end_date",
     "rent_amount",
     "payment_day",
)

# Fields that drive invoice amounts and dates; frozen once invoices exist
BILLING_FIELDS = ("start_date", "end_date", "rent_amount", "payment_day")


class ContractService:
     """Service class for contract-related business logic."""

     @staticmethod
     def find_overlapping_contracts(
          db: Session,
          tenant_id: int,
          property_id: int,
          start_date: date,
          end_date: date,
          exclude_id: Optional[int] = None,
     ) -> List[Contract]:
          """Active-family contracts on the property whose dates intersect the range."""
          contracts = storage.list_active_family_contracts(db, property_id, tenant_id, start_date, end_date)
          return [c for c in contracts if c.id != exclude_id]

     @staticmethod
     def ensure_no_overlap(
          db: Session,
          tenant_id: int,
          property_id: int,
          start_date: date,
          end_date: date,
          exclude_id: Optional[int] = None,
     ) -> None:
          overlapping = ContractService.find_overlapping_contracts(
               db, tenant_id, property_id, start_date, end_date, exclude_id=exclude_id
          )
          if overlapping:
               first = overlapping[0]
               raise ConflictError(
                    f"Property already has an active contract ({first.number}) "
                    f"overlapping {start_date.isoformat()}..{end_date.isoformat()}"
               )

     @staticmethod
     def create_contract(db: Session, tenant_id: int, data: dict) -> Contract:
          """
          Create a contract, by default in draft.

          Args:
               data: contract fields (see EDITABLE_FIELDS)

          Raises:
               ValidationError: If the terms cannot be billed
               ConflictError: If the number is taken, or an active-family
                    status would overlap another contract on the property
          """
          fields = _clean_fields(data)
          fields.setdefault("status", ContractStatus.DRAFT)
          fields.setdefault("late_fee_type", LateFeeType.NONE)
          missing = [f for f in REQUIRED_FIELDS if f not in fields]
          if missing:
               raise ValidationError(f"Missing contract fields: {', '.join(missing)}")
          status = fields["status"]
          if status not in (ContractStatus.DRAFT, ContractStatus.SIGNED):
               raise ValidationError("New contracts start as draft or signed; use activation")
          _ensure_references(db, tenant_id, fields)

          validate_contract_terms(
               fields.get("start_date"),
               fields.get("end_date"),
               fields.get("rent_amount"),
               fields.get("payment_day"),
               fields["late_fee_type"],
               fields.get("late_fee_value"),
          )
          _ensure_unique_number(db, tenant_id, fields["number"])

          if status in ACTIVE_FAMILY:
               ContractService.ensure_no_overlap(
                    db, tenant_id, fields["property_id"], fields["start_date"], fields["end_date"]
               )

          contract = Contract(tenant_id=tenant_id, **fields)
          db.add(contract)
          db.flush()
          logger.info("Created contract %s (%s)", contract.number, status.value)
          return contract

     @staticmethod
     def update_contract(db: Session, tenant_id: int, contract_id: int, data: dict) -> Contract:
          """
          Update contract fields, re-validating terms and overlap.

          Billing terms are frozen once invoices have been generated.
          """
          contract = storage.get_contract(db, contract_id, tenant_id)
          changes = _clean_fields(data)
          _ensure_references(db, tenant_id, changes)

          if changes.get("status") == ContractStatus.ACTIVE and not contract.invoices_generated:
               raise ValidationError("Use contract activation to make a contract active")
          if contract.invoices_generated:
               frozen = [f for f in BILLING_FIELDS if f in changes and changes[f] != getattr(contract, f)]
               if frozen:
                    raise ValidationError(
                         f"Cannot change {', '.join(frozen)} after invoices were generated"
                    )
          if "number" in changes and changes["number"] != contract.number:
               _ensure_unique_number(db, tenant_id, changes["number"])

          merged = {f: changes.get(f, getattr(contract, f)) for f in EDITABLE_FIELDS}
          validate_contract_terms(
               merged["start_date"],
               merged["end_date"],
               merged["rent_amount"],
               merged["payment_day"],
               merged["late_fee_type"],
               merged["late_fee_value"],
          )
          if merged["status"] in ACTIVE_FAMILY:
               ContractService.ensure_no_overlap(
                    db,
                    tenant_id,
                    merged["property_id"],
                    merged["start_date"],
                    merged["end_date"],
                    exclude_id=contract.id,
               )

          for name, value in changes.items():
               setattr(contract, name, value)
          db.flush()
          logger.info("Updated contract %s", contract.number)
          return contract

     @staticmethod
     def activate_contract(db: Session, tenant_id: int, contract_id: int) -> Tuple[Contract, List[Invoice], int]:
          """
          Activate a contract and generate its invoices.

          Re-activating an already active contract creates no new invoices.

          Returns:
               (contract, all of its invoices, number of invoices created now)

          Raises:
               NotFoundError: If the contract is not in the tenant's scope
               ValidationError: If the contract is expired or cancelled
               ConflictError: If it would overlap another active contract
          """
          contract = storage.get_contract(db, contract_id, tenant_id)
          if contract.status in (ContractStatus.EXPIRED, ContractStatus.CANCELLED):
               raise ValidationError(f"Contract {contract.number} is {contract.status.value}")

          ContractService.ensure_no_overlap(
               db,
               tenant_id,
               contract.property_id,
               contract.start_date,
               contract.end_date,
               exclude_id=contract.id,
          )

          already_generated = contract.invoices_generated
          invoices = InvoiceService.generate_contract_invoices(db, contract.id, tenant_id)
          created = 0 if already_generated else len(invoices)

          if contract.status != ContractStatus.ACTIVE:
               contract.status = ContractStatus.ACTIVE
          db.flush()

          logger.info("Activated contract %s (%d invoices created)", contract.number, created)
          return contract, invoices, created

     @staticmethod
     def delete_contract(db: Session, tenant_id: int, contract_id: int) -> None:
          """
          Delete a contract with its invoices and charges.

          Raises:
               ConflictError: If any of its invoices has payments
          """
          contract = storage.get_contract(db, contract_id, tenant_id)
          paid = (
               db.query(Payment.id)
               .join(Invoice, Payment.invoice_id == Invoice.id)
               .filter(Invoice.contract_id == contract.id, Invoice.tenant_id == tenant_id)
               .first()
          )
          if paid:
               raise ConflictError(f"Contract {contract.number} has invoices with payments")

          for invoice in storage.list_invoices_for_contract(db, contract.id, tenant_id):
               db.delete(invoice)
          db.flush()
          db.expire(contract, ["invoices"])
          db.delete(contract)
          db.flush()
          logger.info("Deleted contract %s", contract.number)


def _clean_fields(data: dict) -> dict:
     fields = {k: v for k, v in data.items() if k in EDITABLE_FIELDS and v is not None}
     if "status" in fields:
          fields["status"] = ContractStatus(fields["status"])
     if "late_fee_type" in fields:
          fields["late_fee_type"] = LateFeeType(fields["late_fee_type"])
     if "rent_amount" in fields:
          fields["rent_amount"] = quantize(fields["rent_amount"])
     if "late_fee_value" in fields:
          fields["late_fee_value"] = quantize(fields["late_fee_value"])
     return fields


def _ensure_references(db: Session, tenant_id: int, fields: dict) -> None:
     """Property and contacts must exist inside the caller's tenant."""
     if "property_id" in fields:
          found = (
               db.query(Property.id)
               .filter(Property.id == fields["property_id"], Property.tenant_id == tenant_id)
               .first()
          )
          if not found:
               raise NotFoundError(f"Property with ID {fields['property_id']} not found")
     for key in ("tenant_contact_id", "owner_contact_id"):
          if key in fields:
               found = (
                    db.query(Contact.id)
                    .filter(Contact.id == fields[key], Contact.tenant_id == tenant_id)
                    .first()
               )
               if not found:
                    raise NotFoundError(f"Contact with ID {fields[key]} not found")


def _ensure_unique_number(db: Session, tenant_id: int, number: str) -> None:
     if not number:
          raise ValidationError("Contract number is required")
     existing = (
          db.query(Contract.id)
          .filter(Contract.tenant_id == tenant_id, Contract.number == number)
          .first()
     )
     if existing:
          raise ConflictError(f"Contract number {number} already exists")
