# routers/payments.py
"""
Payment API.

Payments are applied to one invoice each. The amount can never exceed
the invoice's balance due; a rejected payment answers 400 with the
balance in the body. Every change reconciles the invoice's amount_paid
and status.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import get_tenant_id, require_manager
from models import Payment
from schemas.payment import (
     PaymentCreate,
     PaymentDeleteResponse,
     PaymentListResponse,
     PaymentResponse,
     PaymentUpdate,
)
from services import storage
from services.payment_service import PaymentService

router = APIRouter(prefix="/api/payments", tags=["payments"])


def _build_payment_response(payment: Payment, db: Session) -> PaymentResponse:
     response = PaymentResponse.model_validate(payment)
     invoice = storage.get_invoice(db, payment.invoice_id, payment.tenant_id)
     response.invoice_status = invoice.status
     response.invoice_amount_paid = invoice.amount_paid
     response.invoice_balance_due = invoice.balance_due
     return response


@router.get(
     "",
     response_model=PaymentListResponse,
     summary="List payments"
)
def list_payments(
     invoice_id: Optional[int] = Query(None, description="Filter by invoice"),
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     payments = PaymentService.list_payments(db, tenant_id, invoice_id=invoice_id)
     return PaymentListResponse(
          payments=[PaymentResponse.model_validate(p) for p in payments],
          total=len(payments),
     )


@router.post(
     "",
     response_model=PaymentResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Record a payment"
)
def create_payment(
     body: PaymentCreate,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     """
     Record money received against an invoice.

     - **amount**: positive, at most the invoice's balance due
     - **method**: how it was paid (transfer, cash, card, ...)
     """
     payment = PaymentService.create_payment(
          db,
          tenant_id,
          body.invoice_id,
          amount=body.amount,
          payment_date=body.payment_date,
          method=body.method,
          receipt_url=body.receipt_url,
     )
     return _build_payment_response(payment, db)


@router.get(
     "/{payment_id}",
     response_model=PaymentResponse,
     summary="Get payment by ID"
)
def get_payment(
     payment_id: int,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     return _build_payment_response(storage.get_payment(db, payment_id, tenant_id), db)


@router.patch(
     "/{payment_id}",
     response_model=PaymentResponse,
     summary="Update payment"
)
def update_payment(
     payment_id: int,
     body: PaymentUpdate,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     """
     Change a payment. A new amount is checked against the balance due
     with this payment's previous amount added back.
     """
     payment = PaymentService.update_payment(
          db,
          tenant_id,
          payment_id,
          amount=body.amount,
          payment_date=body.payment_date,
          method=body.method,
          receipt_url=body.receipt_url,
     )
     return _build_payment_response(payment, db)


@router.delete(
     "/{payment_id}",
     response_model=PaymentDeleteResponse,
     summary="Delete payment"
)
def delete_payment(
     payment_id: int,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id),
     token: dict = Depends(require_manager)
):
     invoice = PaymentService.delete_payment(db, tenant_id, payment_id)
     return PaymentDeleteResponse(
          invoice_id=invoice.id,
          invoice_status=invoice.status,
          invoice_amount_paid=invoice.amount_paid,
     )
