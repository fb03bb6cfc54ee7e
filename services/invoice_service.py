# services/invoice_service.py
"""
Invoice Service - Business logic layer for invoice operations.

Covers the invoice lifecycle engine:
- expanding a contract into monthly invoices
- late-fee accrual when a due date passes unpaid
- recomputing cached totals from charges and payments
- manual invoice and charge administration
- on-demand payment reminders
"""
import calendar
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterator, List, NamedTuple, Optional, Tuple

from sqlalchemy.orm import Session

from models import (
     Contract, Invoice, InvoiceCharge, InvoiceStatus, ChargeKind, LateFeeType
)
from services import storage
from services.errors import ConflictError, ValidationError
from services.locks import invoice_guard
from services.validation import (
     require_date_range, require_non_negative, validate_contract_terms
)
from utils.email import send_invoice_reminder
from utils.money import ZERO, format_amount, percent_of, quantize, sum_amounts

logger = logging.getLogger(__name__)

SPANISH_MONTHS = (
     "enero", "febrero", "marzo", "abril", "mayo", "junio",
     "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)

OPEN_STATUSES = (InvoiceStatus.ISSUED, InvoiceStatus.PARTIAL, InvoiceStatus.OVERDUE)


class InvoiceTotals(NamedTuple):
     subtotal: Decimal
     late_fee: Decimal
     total: Decimal


def month_span(start: date, end: date) -> Iterator[Tuple[int, int]]:
     """Yield (year, month) for every calendar month from start's through end's."""
     year, month = start.year, start.month
     while (year, month) <= (end.year, end.month):
          yield year, month
          month += 1
          if month > 12:
               month = 1
               year += 1


def due_date_for(year: int, month: int, payment_day: int) -> date:
     """Day payment_day of the month, clamped to the month's last day."""
     last_day = calendar.monthrange(year, month)[1]
     return date(year, month, min(payment_day, last_day))


def rent_description(year: int, month: int) -> str:
     return f"Canon de Arrendamiento - {SPANISH_MONTHS[month - 1]} de {year}"


def late_fee_description(contract: Contract) -> str:
     if contract.late_fee_type == LateFeeType.PERCENT:
          policy = f"{quantize(contract.late_fee_value).normalize():f}%"
     else:
          policy = "Monto fijo"
     return f"Mora por pago tardío ({policy})"


def derive_payment_status(amount_paid: Decimal, total_amount: Decimal) -> InvoiceStatus:
     if amount_paid >= total_amount:
          return InvoiceStatus.PAID
     if amount_paid > 0:
          return InvoiceStatus.PARTIAL
     return InvoiceStatus.ISSUED


def _charge_amount(kind: ChargeKind, amount) -> Decimal:
     # Adjustments may be credits; every other line item is a debit
     if kind == ChargeKind.ADJUSTMENT:
          return quantize(amount)
     return require_non_negative("Charge amount", amount)


class InvoiceService:
     """Service class for invoice-related business logic."""

     # ------------------------------------------------------------------
     # Invoice generation
     # ------------------------------------------------------------------

     @staticmethod
     def generate_contract_invoices(db: Session, contract_id: int, tenant_id: int) -> List[Invoice]:
          """
          Create one invoice per calendar month of a contract.

          Each invoice is issued on the first of its month, due on the
          contract's payment day (clamped to the month's last day) and
          carries a single rent charge. Numbers are
          "{contract.number}-001", "-002", ... in chronological order.

          Generation happens once per contract: when the contract is already
          flagged as generated, its existing invoices are returned and
          nothing is created.

          Args:
               db: SQLAlchemy database session
               contract_id: ID of the contract
               tenant_id: Tenant (organization) the contract must belong to

          Returns:
               List of the contract's invoices

          Raises:
               NotFoundError: If the contract is not in the tenant's scope
               ValidationError: If the contract terms cannot be billed
          """
          contract = storage.get_contract(db, contract_id, tenant_id)

          if contract.invoices_generated:
               logger.info("Invoices already generated for contract %s; skipping", contract.number)
               return storage.list_invoices_for_contract(db, contract.id, tenant_id)

          validate_contract_terms(
               contract.start_date,
               contract.end_date,
               contract.rent_amount,
               contract.payment_day,
          )
          rent = quantize(contract.rent_amount)

          created = []
          for seq, (year, month) in enumerate(month_span(contract.start_date, contract.end_date), start=1):
               invoice = Invoice(
                    tenant_id=contract.tenant_id,
                    contract_id=contract.id,
                    tenant_contact_id=contract.tenant_contact_id,
                    number=f"{contract.number}-{seq:03d}",
                    issue_date=date(year, month, 1),
                    due_date=due_date_for(year, month, contract.payment_day),
                    subtotal=rent,
                    tax=ZERO,
                    other_charges=ZERO,
                    late_fee=ZERO,
                    total_amount=rent,
                    amount_paid=ZERO,
                    status=InvoiceStatus.ISSUED,
               )
               charge = InvoiceCharge(
                    kind=ChargeKind.RENT,
                    description=rent_description(year, month),
                    amount=rent,
               )
               created.append(storage.insert_invoice_with_charge(db, invoice, charge))

          contract.invoices_generated = True
          db.flush()

          logger.info("Generated %d invoices for contract %s", len(created), contract.number)
          return created

     # ------------------------------------------------------------------
     # Late fees
     # ------------------------------------------------------------------

     @staticmethod
     def compute_late_fee(contract: Contract, subtotal) -> Decimal:
          """Fee owed under the contract's policy; zero when there is none."""
          if contract.late_fee_value is None:
               return ZERO
          if contract.late_fee_type == LateFeeType.PERCENT:
               return percent_of(subtotal, contract.late_fee_value)
          if contract.late_fee_type == LateFeeType.FIXED:
               return quantize(contract.late_fee_value)
          return ZERO

     @staticmethod
     def apply_late_fee(
          db: Session,
          invoice_id: int,
          tenant_id: int,
          now: Optional[datetime] = None
     ) -> Decimal:
          """
          Move an unpaid invoice past its due date to OVERDUE, adding a
          late-fee charge when the contract's policy yields one.

          Runs at most once per invoice (stamped with late_fee_applied_at);
          later calls, and calls on draft, paid or cancelled invoices, change
          nothing and return zero.

          Returns:
               The fee that was applied

          Raises:
               NotFoundError: If the invoice or its contract is missing
          """
          now = now or datetime.now(timezone.utc).replace(tzinfo=None)
          fee = ZERO

          with invoice_guard(db, invoice_id, tenant_id) as invoice:
               if invoice.late_fee_applied_at is not None:
                    logger.info("Late fee already applied to invoice %s; skipping", invoice.number)
                    return ZERO
               if invoice.status in (InvoiceStatus.DRAFT, InvoiceStatus.PAID, InvoiceStatus.CANCELLED):
                    logger.info("Invoice %s is %s; no late fee", invoice.number, invoice.status.value)
                    return ZERO

               contract = storage.get_contract(db, invoice.contract_id, tenant_id)
               fee = InvoiceService.compute_late_fee(contract, invoice.subtotal)

               if fee > 0:
                    invoice.charges.append(InvoiceCharge(
                         kind=ChargeKind.LATE_FEE,
                         description=late_fee_description(contract),
                         amount=fee,
                    ))
                    InvoiceService.apply_charge_totals(db, invoice)

               invoice.status = InvoiceStatus.OVERDUE
               invoice.late_fee_applied_at = now

          if fee > 0:
               logger.info("Applied late fee %s to invoice %s", format_amount(fee), invoice.number)
          else:
               logger.info("Marked invoice %s overdue without late fee", invoice.number)
          return fee

     # ------------------------------------------------------------------
     # Totals / reconciliation
     # ------------------------------------------------------------------

     @staticmethod
     def apply_charge_totals(db: Session, invoice: Invoice) -> InvoiceTotals:
          """
          Recompute subtotal, late_fee and total_amount from the invoice's
          charges, then re-reconcile payments against the new total.

          A total below zero, or below what has already been paid, is
          rejected with ValidationError; the guard rolls the change back.

          Callers must already hold the invoice guard (or own a brand new
          invoice).
          """
          db.flush()
          charges = storage.list_charges_for_invoice(db, invoice.id)

          subtotal = sum_amounts(c.amount for c in charges if c.kind != ChargeKind.LATE_FEE)
          late_fee = sum_amounts(c.amount for c in charges if c.kind == ChargeKind.LATE_FEE)
          total = sum_amounts([subtotal, invoice.tax, invoice.other_charges, late_fee])

          invoice.subtotal = subtotal
          invoice.late_fee = late_fee
          invoice.total_amount = total

          if total < 0:
               raise ValidationError(
                    f"Invoice {invoice.number} total cannot be negative ({format_amount(total)})"
               )
          amount_paid = InvoiceService.reconcile_payments(db, invoice, keep_overdue=True)
          if total < amount_paid:
               raise ValidationError(
                    f"Invoice {invoice.number} total {format_amount(total)} would fall below "
                    f"the {format_amount(amount_paid)} already paid"
               )
          return InvoiceTotals(subtotal=subtotal, late_fee=late_fee, total=total)

     @staticmethod
     def reconcile_payments(db: Session, invoice: Invoice, keep_overdue: bool = False) -> Decimal:
          """
          Recompute amount_paid from the invoice's payments and derive status:
          PAID when covered, PARTIAL when partly paid, otherwise ISSUED.

          The payment path never re-derives OVERDUE from the due date; that
          transition belongs to the daily accrual job. keep_overdue lets the
          charge path leave an unpaid overdue invoice overdue. Cancelled
          invoices, and drafts with nothing paid, keep their status.
          """
          db.flush()
          payments = storage.list_payments_for_invoice(db, invoice.id)
          amount_paid = sum_amounts(p.amount for p in payments)
          invoice.amount_paid = amount_paid

          if invoice.status == InvoiceStatus.CANCELLED:
               pass
          elif invoice.status == InvoiceStatus.DRAFT and amount_paid == 0:
               pass
          else:
               status = derive_payment_status(amount_paid, quantize(invoice.total_amount))
               if keep_overdue and invoice.status == InvoiceStatus.OVERDUE and status != InvoiceStatus.PAID:
                    status = InvoiceStatus.OVERDUE
               invoice.status = status

          db.flush()
          return amount_paid

     @staticmethod
     def recalculate_totals(db: Session, invoice_id: int, tenant_id: int) -> InvoiceTotals:
          """
          Recompute an invoice's cached money columns from its charges and
          payments. Safe to call any number of times.

          Raises:
               NotFoundError: If the invoice is not in the tenant's scope
          """
          with invoice_guard(db, invoice_id, tenant_id) as invoice:
               totals = InvoiceService.apply_charge_totals(db, invoice)
          logger.info(
               "Recalculated invoice %s: subtotal=%s late_fee=%s total=%s",
               invoice.number,
               format_amount(totals.subtotal),
               format_amount(totals.late_fee),
               format_amount(totals.total),
          )
          return totals

     # ------------------------------------------------------------------
     # Manual invoices and charges
     # ------------------------------------------------------------------

     @staticmethod
     def create_invoice(
          db: Session,
          tenant_id: int,
          contract_id: int,
          number: str,
          issue_date: date,
          due_date: date,
          charges: List[dict],
          tax=ZERO,
          other_charges=ZERO,
          status: InvoiceStatus = InvoiceStatus.ISSUED,
     ) -> Invoice:
          """
          Create an ad-hoc invoice for a contract from explicit line items.

          Args:
               charges: dicts with "description", "amount" and optional "kind"

          Raises:
               NotFoundError: If the contract is not in the tenant's scope
               ValidationError: On bad dates, negative amounts or no charges
               ConflictError: If the number is already used in the tenant
          """
          contract = storage.get_contract(db, contract_id, tenant_id)
          require_date_range(issue_date, due_date)
          if not charges:
               raise ValidationError("An invoice needs at least one charge")
          if status not in (InvoiceStatus.DRAFT, InvoiceStatus.ISSUED):
               raise ValidationError("New invoices start as draft or issued")

          existing = (
               db.query(Invoice.id)
               .filter(Invoice.tenant_id == tenant_id, Invoice.number == number)
               .first()
          )
          if existing:
               raise ConflictError(f"Invoice number {number} already exists")

          invoice = Invoice(
               tenant_id=tenant_id,
               contract_id=contract.id,
               tenant_contact_id=contract.tenant_contact_id,
               number=number,
               issue_date=issue_date,
               due_date=due_date,
               subtotal=ZERO,
               tax=require_non_negative("Tax", tax),
               other_charges=require_non_negative("Other charges", other_charges),
               late_fee=ZERO,
               total_amount=ZERO,
               amount_paid=ZERO,
               status=status,
          )
          for item in charges:
               kind = ChargeKind(item.get("kind") or ChargeKind.OTHER)
               invoice.charges.append(InvoiceCharge(
                    kind=kind,
                    description=item["description"],
                    amount=_charge_amount(kind, item["amount"]),
               ))
          db.add(invoice)
          InvoiceService.apply_charge_totals(db, invoice)

          logger.info("Created invoice %s for contract %s", invoice.number, contract.number)
          return invoice

     @staticmethod
     def add_charge(
          db: Session,
          tenant_id: int,
          invoice_id: int,
          description: str,
          amount,
          kind: ChargeKind = ChargeKind.OTHER,
     ) -> Tuple[InvoiceCharge, InvoiceTotals]:
          """Append a line item and recompute totals."""
          kind = ChargeKind(kind)
          value = _charge_amount(kind, amount)
          with invoice_guard(db, invoice_id, tenant_id) as invoice:
               _ensure_mutable(invoice)
               charge = InvoiceCharge(kind=kind, description=description, amount=value)
               invoice.charges.append(charge)
               totals = InvoiceService.apply_charge_totals(db, invoice)
          logger.info("Added %s charge %s to invoice %s", kind.value, format_amount(value), invoice.number)
          return charge, totals

     @staticmethod
     def update_charge(
          db: Session,
          tenant_id: int,
          invoice_id: int,
          charge_id: int,
          description: Optional[str] = None,
          amount=None,
          kind: Optional[ChargeKind] = None,
     ) -> Tuple[InvoiceCharge, InvoiceTotals]:
          with invoice_guard(db, invoice_id, tenant_id) as invoice:
               _ensure_mutable(invoice)
               charge = storage.get_charge(db, charge_id, invoice.id)
               if kind is not None:
                    charge.kind = ChargeKind(kind)
               if amount is not None:
                    charge.amount = _charge_amount(charge.kind, amount)
               if description is not None:
                    charge.description = description
               totals = InvoiceService.apply_charge_totals(db, invoice)
          return charge, totals

     @staticmethod
     def delete_charge(db: Session, tenant_id: int, invoice_id: int, charge_id: int) -> InvoiceTotals:
          with invoice_guard(db, invoice_id, tenant_id) as invoice:
               _ensure_mutable(invoice)
               charge = storage.get_charge(db, charge_id, invoice.id)
               invoice.charges.remove(charge)
               totals = InvoiceService.apply_charge_totals(db, invoice)
          logger.info("Removed charge %s from invoice %s", charge_id, invoice.number)
          return totals

     @staticmethod
     def update_invoice(
          db: Session,
          tenant_id: int,
          invoice_id: int,
          tax=None,
          other_charges=None,
          due_date: Optional[date] = None,
     ) -> Tuple[Invoice, InvoiceTotals]:
          """
          Edit the header of an invoice: tax, other charges and due date.
          Totals are recomputed afterwards.

          Raises:
               NotFoundError: If the invoice is not in the tenant's scope
               ValidationError: On negative amounts, a due date before the
                    issue date, a cancelled invoice, or a total that would
                    fall below what was paid
          """
          with invoice_guard(db, invoice_id, tenant_id) as invoice:
               _ensure_mutable(invoice)
               if tax is not None:
                    invoice.tax = require_non_negative("Tax", tax)
               if other_charges is not None:
                    invoice.other_charges = require_non_negative("Other charges", other_charges)
               if due_date is not None:
                    require_date_range(invoice.issue_date, due_date)
                    invoice.due_date = due_date
               totals = InvoiceService.apply_charge_totals(db, invoice)
          logger.info("Updated invoice %s (total=%s)", invoice.number, format_amount(totals.total))
          return invoice, totals

     @staticmethod
     def cancel_invoice(db: Session, tenant_id: int, invoice_id: int) -> Invoice:
          with invoice_guard(db, invoice_id, tenant_id) as invoice:
               if quantize(invoice.amount_paid) > 0:
                    raise ConflictError(
                         f"Invoice {invoice.number} has payments; remove them before cancelling"
                    )
               invoice.status = InvoiceStatus.CANCELLED
          logger.info("Cancelled invoice %s", invoice.number)
          return invoice

     @staticmethod
     def delete_invoice(
          db: Session,
          tenant_id: int,
          invoice_id: int,
          cascade_payments: bool = False
     ) -> None:
          """
          Delete an invoice and its charges.

          An invoice with payments is only deleted when cascade_payments is
          set, in which case its payments are deleted first.

          Raises:
               ConflictError: If payments exist and cascade_payments is False
          """
          with invoice_guard(db, invoice_id, tenant_id) as invoice:
               payments = storage.list_payments_for_invoice(db, invoice.id)
               if payments and not cascade_payments:
                    raise ConflictError(
                         f"Invoice {invoice.number} has {len(payments)} payment(s); "
                         "delete them first or request a cascading delete"
                    )
               for payment in payments:
                    db.delete(payment)
               db.flush()
               db.expire(invoice, ["payments"])
               db.delete(invoice)
          logger.info(
               "Deleted invoice %s (%d payment(s) removed)", invoice.number, len(payments)
          )

     # ------------------------------------------------------------------
     # Notifications
     # ------------------------------------------------------------------

     @staticmethod
     def send_reminder(db: Session, tenant_id: int, invoice_id: int, sender=send_invoice_reminder) -> str:
          """
          Email the renter about an invoice on demand: the overdue notice
          for overdue invoices, the due-soon notice otherwise.

          Returns:
               The reminder kind that was sent

          Raises:
               NotFoundError: If the invoice is not in the tenant's scope
               ValidationError: If the renter has no email address
          """
          invoice = storage.get_invoice(db, invoice_id, tenant_id)
          kind = "overdue" if invoice.status == InvoiceStatus.OVERDUE else "due_soon"
          if not sender(invoice, kind):
               raise ValidationError("Tenant contact has no email address")
          return kind

     # ------------------------------------------------------------------
     # Reporting
     # ------------------------------------------------------------------

     @staticmethod
     def list_invoices(
          db: Session,
          tenant_id: int,
          status: Optional[InvoiceStatus] = None,
          contract_id: Optional[int] = None,
     ) -> List[Invoice]:
          return storage.list_invoices(db, tenant_id, status=status, contract_id=contract_id)

     @staticmethod
     def summarize(db: Session, tenant_id: int) -> dict:
          """
          Counts and amounts per invoice status for a tenant.

          Returns:
               Dictionary with per-status totals and the outstanding balance
          """
          invoices = db.query(Invoice).filter(Invoice.tenant_id == tenant_id).all()

          by_status = {}
          for status in InvoiceStatus:
               subset = [inv for inv in invoices if inv.status == status]
               by_status[status.value] = {
                    "count": len(subset),
                    "amount": format_amount(sum_amounts(inv.total_amount for inv in subset)),
               }

          open_invoices = [inv for inv in invoices if inv.status in OPEN_STATUSES]
          outstanding = sum_amounts(
               quantize(inv.total_amount) - quantize(inv.amount_paid) for inv in open_invoices
          )

          return {
               "tenant_id": tenant_id,
               "total_invoices": len(invoices),
               "total_billed": format_amount(sum_amounts(
                    inv.total_amount for inv in invoices if inv.status != InvoiceStatus.CANCELLED
               )),
               "total_collected": format_amount(sum_amounts(inv.amount_paid for inv in invoices)),
               "total_outstanding": format_amount(outstanding),
               "by_status": by_status,
          }


def _ensure_mutable(invoice: Invoice) -> None:
     if invoice.status == InvoiceStatus.CANCELLED:
          raise ValidationError(f"Invoice {invoice.number} is cancelled")
