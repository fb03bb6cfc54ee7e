# services/storage.py
"""
Record store - tenant-scoped reads and writes used by the billing services.

Every entity fetch takes the tenant id as a required argument; a record
that exists under another tenant is reported as missing.
"""
from datetime import date
from typing import List

from sqlalchemy.orm import Session, selectinload

from models import (
     Contract, ContractStatus, ACTIVE_FAMILY, Invoice, InvoiceCharge, Payment, OcrLog
)
from services.errors import NotFoundError


def get_contract(db: Session, contract_id: int, tenant_id: int) -> Contract:
     contract = (
          db.query(Contract)
          .filter(Contract.id == contract_id, Contract.tenant_id == tenant_id)
          .first()
     )
     if contract is None:
          raise NotFoundError(f"Contract with ID {contract_id} not found")
     return contract


def list_contracts(db: Session, tenant_id: int, status: ContractStatus = None) -> List[Contract]:
     query = db.query(Contract).filter(Contract.tenant_id == tenant_id)
     if status is not None:
          query = query.filter(Contract.status == status)
     return query.order_by(Contract.start_date.desc(), Contract.id.desc()).all()


def list_contracts_by_property(db: Session, property_id: int, tenant_id: int) -> List[Contract]:
     return (
          db.query(Contract)
          .filter(Contract.property_id == property_id, Contract.tenant_id == tenant_id)
          .order_by(Contract.start_date)
          .all()
     )


def list_active_family_contracts(
     db: Session, property_id: int, tenant_id: int, start_date: date, end_date: date
) -> List[Contract]:
     """Active-family contracts on a property whose inclusive range meets [start_date, end_date]."""
     return (
          db.query(Contract)
          .filter(
               Contract.property_id == property_id,
               Contract.tenant_id == tenant_id,
               Contract.status.in_(ACTIVE_FAMILY),
               Contract.start_date <= end_date,
               Contract.end_date >= start_date,
          )
          .order_by(Contract.start_date)
          .all()
     )


def get_invoice(db: Session, invoice_id: int, tenant_id: int, for_update: bool = False) -> Invoice:
     """
     Load an invoice with its charges and payments.

     With for_update the row is locked (SELECT ... FOR UPDATE where the
     database supports it) and any copy already in the session is
     overwritten with the committed state.
     """
     query = (
          db.query(Invoice)
          .options(selectinload(Invoice.charges), selectinload(Invoice.payments))
          .filter(Invoice.id == invoice_id, Invoice.tenant_id == tenant_id)
     )
     if for_update:
          query = query.with_for_update().populate_existing()
     invoice = query.first()
     if invoice is None:
          raise NotFoundError(f"Invoice with ID {invoice_id} not found")
     return invoice


def list_invoices(
     db: Session,
     tenant_id: int,
     status=None,
     contract_id: int = None,
) -> List[Invoice]:
     query = db.query(Invoice).filter(Invoice.tenant_id == tenant_id)
     if status is not None:
          query = query.filter(Invoice.status == status)
     if contract_id is not None:
          query = query.filter(Invoice.contract_id == contract_id)
     return query.order_by(Invoice.due_date.desc(), Invoice.id.desc()).all()


def list_invoices_for_contract(db: Session, contract_id: int, tenant_id: int) -> List[Invoice]:
     return (
          db.query(Invoice)
          .filter(Invoice.contract_id == contract_id, Invoice.tenant_id == tenant_id)
          .order_by(Invoice.issue_date, Invoice.id)
          .all()
     )


def insert_invoice_with_charge(db: Session, invoice: Invoice, charge: InvoiceCharge) -> Invoice:
     invoice.charges.append(charge)
     db.add(invoice)
     db.flush()
     return invoice


def update_invoice_fields(db: Session, invoice_id: int, tenant_id: int, **fields) -> Invoice:
     invoice = get_invoice(db, invoice_id, tenant_id)
     for name, value in fields.items():
          if not hasattr(Invoice, name):
               raise AttributeError(f"Invoice has no field {name!r}")
          setattr(invoice, name, value)
     db.flush()
     return invoice


def get_charge(db: Session, charge_id: int, invoice_id: int) -> InvoiceCharge:
     charge = (
          db.query(InvoiceCharge)
          .filter(InvoiceCharge.id == charge_id, InvoiceCharge.invoice_id == invoice_id)
          .first()
     )
     if charge is None:
          raise NotFoundError(f"Charge with ID {charge_id} not found on invoice {invoice_id}")
     return charge


def list_charges_for_invoice(db: Session, invoice_id: int) -> List[InvoiceCharge]:
     return (
          db.query(InvoiceCharge)
          .filter(InvoiceCharge.invoice_id == invoice_id)
          .order_by(InvoiceCharge.id)
          .all()
     )


def insert_payment(db: Session, payment: Payment) -> Payment:
     db.add(payment)
     db.flush()
     return payment


def get_payment(db: Session, payment_id: int, tenant_id: int) -> Payment:
     payment = (
          db.query(Payment)
          .filter(Payment.id == payment_id, Payment.tenant_id == tenant_id)
          .first()
     )
     if payment is None:
          raise NotFoundError(f"Payment with ID {payment_id} not found")
     return payment


def list_payments(db: Session, tenant_id: int, invoice_id: int = None) -> List[Payment]:
     query = db.query(Payment).filter(Payment.tenant_id == tenant_id)
     if invoice_id is not None:
          query = query.filter(Payment.invoice_id == invoice_id)
     return query.order_by(Payment.payment_date.desc(), Payment.id.desc()).all()


def list_payments_for_invoice(db: Session, invoice_id: int) -> List[Payment]:
     return (
          db.query(Payment)
          .filter(Payment.invoice_id == invoice_id)
          .order_by(Payment.id)
          .all()
     )


def get_ocr_log(db: Session, ocr_log_id: int, tenant_id: int) -> OcrLog:
     ocr_log = (
          db.query(OcrLog)
          .filter(OcrLog.id == ocr_log_id, OcrLog.tenant_id == tenant_id)
          .first()
     )
     if ocr_log is None:
          raise NotFoundError(f"OCR log with ID {ocr_log_id} not found")
     return ocr_log


def list_ocr_logs(db: Session, tenant_id: int, status=None) -> List[OcrLog]:
     query = db.query(OcrLog).filter(OcrLog.tenant_id == tenant_id)
     if status is not None:
          query = query.filter(OcrLog.status == status)
     return query.order_by(OcrLog.created_at.desc(), OcrLog.id.desc()).all()
