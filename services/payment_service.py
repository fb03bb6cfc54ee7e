# services/payment_service.py
"""
Payment Service - recording money received against invoices.

Every mutation runs inside invoice_guard so that the balance check and
the write happen against the latest committed state of the invoice:
two concurrent payments cannot both pass the check and overpay it.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from models import Invoice, InvoiceStatus, Payment
from services import storage
from services.errors import ValidationError
from services.invoice_service import InvoiceService
from services.locks import invoice_guard
from services.validation import require_positive
from utils.money import format_amount, quantize, sum_amounts

logger = logging.getLogger(__name__)


def _paid_so_far(db: Session, invoice: Invoice) -> Decimal:
     return sum_amounts(p.amount for p in storage.list_payments_for_invoice(db, invoice.id))


def _check_amount(amount: Decimal, balance_due: Decimal) -> None:
     if amount > balance_due:
          raise ValidationError(
               f"Payment amount ({format_amount(amount)}) exceeds the balance due "
               f"({format_amount(balance_due)})",
               balance_due=balance_due,
          )


def _ensure_payable(invoice: Invoice) -> None:
     if invoice.status == InvoiceStatus.CANCELLED:
          raise ValidationError(f"Invoice {invoice.number} is cancelled")


class PaymentService:
     """Service class for payment admission and bookkeeping."""

     @staticmethod
     def create_payment(
          db: Session,
          tenant_id: int,
          invoice_id: int,
          amount,
          payment_date: date,
          method: str,
          receipt_url: Optional[str] = None,
     ) -> Payment:
          """
          Record a payment and reconcile the invoice.

          The amount must be positive and no larger than the balance due
          (total_amount minus what is already paid).

          Raises:
               NotFoundError: If the invoice is not in the tenant's scope
               ValidationError: On a non-positive amount or an overpayment;
                    carries balance_due for display
          """
          value = require_positive("Payment amount", amount)
          if not method:
               raise ValidationError("Payment method is required")
          if payment_date is None:
               raise ValidationError("Payment date is required")

          with invoice_guard(db, invoice_id, tenant_id) as invoice:
               _ensure_payable(invoice)
               balance_due = quantize(invoice.total_amount) - _paid_so_far(db, invoice)
               _check_amount(value, balance_due)

               payment = Payment(
                    tenant_id=tenant_id,
                    invoice_id=invoice.id,
                    amount=value,
                    payment_date=payment_date,
                    method=method,
                    receipt_url=receipt_url,
               )
               storage.insert_payment(db, payment)
               InvoiceService.reconcile_payments(db, invoice)

          logger.info(
               "Recorded payment %s on invoice %s (status=%s)",
               format_amount(value), invoice.number, invoice.status.value
          )
          return payment

     @staticmethod
     def update_payment(
          db: Session,
          tenant_id: int,
          payment_id: int,
          amount=None,
          payment_date: Optional[date] = None,
          method: Optional[str] = None,
          receipt_url: Optional[str] = None,
     ) -> Payment:
          """
          Change a payment. A new amount is checked against the balance due
          with this payment's current amount added back.
          """
          payment = storage.get_payment(db, payment_id, tenant_id)

          with invoice_guard(db, payment.invoice_id, tenant_id) as invoice:
               if amount is not None:
                    value = require_positive("Payment amount", amount)
                    balance_due = (
                         quantize(invoice.total_amount)
                         - _paid_so_far(db, invoice)
                         + quantize(payment.amount)
                    )
                    _check_amount(value, balance_due)
                    payment.amount = value
               if payment_date is not None:
                    payment.payment_date = payment_date
               if method is not None:
                    if not method:
                         raise ValidationError("Payment method is required")
                    payment.method = method
               if receipt_url is not None:
                    payment.receipt_url = receipt_url
               InvoiceService.reconcile_payments(db, invoice)

          logger.info("Updated payment %s on invoice %s", payment.id, invoice.number)
          return payment

     @staticmethod
     def delete_payment(db: Session, tenant_id: int, payment_id: int) -> Invoice:
          """Remove a payment and reconcile its invoice; returns the invoice."""
          payment = storage.get_payment(db, payment_id, tenant_id)

          with invoice_guard(db, payment.invoice_id, tenant_id) as invoice:
               db.delete(payment)
               db.flush()
               db.expire(invoice, ["payments"])
               InvoiceService.reconcile_payments(db, invoice)

          logger.info("Deleted payment %s from invoice %s", payment_id, invoice.number)
          return invoice

     @staticmethod
     def list_payments(db: Session, tenant_id: int, invoice_id: Optional[int] = None) -> List[Payment]:
          return storage.list_payments(db, tenant_id, invoice_id=invoice_id)
