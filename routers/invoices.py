# routers/invoices.py
"""
Invoice API routes.

Invoices come from contract activation or are created by hand; their
money columns are always derived from charges and payments by
InvoiceService. Service errors are turned into HTTP responses by the
handler in main.py.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import get_tenant_id, require_manager
from models import Invoice, InvoiceCharge, InvoiceStatus
from schemas.invoice import (
     ChargeAddedResponse,
     ChargeCreate,
     ChargeResponse,
     InvoiceCreate,
     InvoiceListResponse,
     InvoiceResponse,
     InvoiceSummaryResponse,
     InvoiceTotalsResponse,
     InvoiceUpdate,
     ReminderResponse,
)
from services import storage
from services.invoice_service import InvoiceService, InvoiceTotals

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


def _build_invoice_response(invoice: Invoice) -> InvoiceResponse:
     return InvoiceResponse.model_validate(invoice)


def _build_totals_response(invoice: Invoice, totals: InvoiceTotals) -> InvoiceTotalsResponse:
     return InvoiceTotalsResponse(
          invoice_id=invoice.id,
          subtotal=totals.subtotal,
          late_fee=totals.late_fee,
          total=totals.total,
          amount_paid=invoice.amount_paid,
          status=invoice.status,
     )


@router.post(
     "",
     response_model=InvoiceResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Create a manual invoice"
)
def create_invoice(
     invoice_data: InvoiceCreate,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     """
     Create an invoice on a contract from explicit line items.

     - **contract_id**: contract being billed
     - **charges**: at least one; only adjustments may be negative
     - **tax** / **other_charges**: added to the total as given
     """
     invoice = InvoiceService.create_invoice(
          db,
          tenant_id=tenant_id,
          contract_id=invoice_data.contract_id,
          number=invoice_data.number,
          issue_date=invoice_data.issue_date,
          due_date=invoice_data.due_date,
          charges=[c.model_dump() for c in invoice_data.charges],
          tax=invoice_data.tax,
          other_charges=invoice_data.other_charges,
          status=invoice_data.status,
     )
     db.commit()
     return _build_invoice_response(storage.get_invoice(db, invoice.id, tenant_id))


@router.get(
     "",
     response_model=InvoiceListResponse,
     summary="List invoices with filters"
)
def list_invoices(
     status: Optional[InvoiceStatus] = Query(None, description="Filter by status"),
     contract_id: Optional[int] = Query(None, description="Filter by contract"),
     page: int = Query(1, ge=1, description="Page number"),
     page_size: int = Query(50, ge=1, le=100, description="Items per page"),
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     """
     Retrieve a paginated list of the organization's invoices, newest due date first.
     """
     invoices = InvoiceService.list_invoices(db, tenant_id, status=status, contract_id=contract_id)
     offset = (page - 1) * page_size
     return InvoiceListResponse(
          invoices=[_build_invoice_response(inv) for inv in invoices[offset:offset + page_size]],
          total=len(invoices),
          page=page,
          page_size=page_size
     )


@router.get(
     "/summary",
     response_model=InvoiceSummaryResponse,
     summary="Invoice counts and amounts per status"
)
def invoice_summary(
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     return InvoiceService.summarize(db, tenant_id)


@router.get(
     "/{invoice_id}",
     response_model=InvoiceResponse,
     summary="Get invoice by ID"
)
def get_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     return _build_invoice_response(storage.get_invoice(db, invoice_id, tenant_id))


@router.patch(
     "/{invoice_id}",
     response_model=InvoiceResponse,
     summary="Update invoice tax, other charges or due date"
)
def update_invoice(
     invoice_id: int,
     invoice_data: InvoiceUpdate,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     """
     Edit the invoice header and recompute its totals.

     - **tax** / **other_charges**: non-negative amounts
     - **due_date**: not before the issue date

     Note: a change that would leave the total below the amount already
     paid is rejected with 400.
     """
     InvoiceService.update_invoice(
          db,
          tenant_id,
          invoice_id,
          tax=invoice_data.tax,
          other_charges=invoice_data.other_charges,
          due_date=invoice_data.due_date,
     )
     return _build_invoice_response(storage.get_invoice(db, invoice_id, tenant_id))


@router.post(
     "/{invoice_id}/recalc",
     response_model=InvoiceTotalsResponse,
     summary="Recalculate invoice totals"
)
def recalculate_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     """
     Recompute subtotal, late fee, total and amount paid from the stored
     charges and payments. Calling it repeatedly changes nothing.
     """
     totals = InvoiceService.recalculate_totals(db, invoice_id, tenant_id)
     invoice = storage.get_invoice(db, invoice_id, tenant_id)
     return _build_totals_response(invoice, totals)


@router.post(
     "/{invoice_id}/charges",
     response_model=ChargeAddedResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Add a charge to an invoice"
)
def add_charge(
     invoice_id: int,
     charge_data: ChargeCreate,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     charge, totals = InvoiceService.add_charge(
          db,
          tenant_id,
          invoice_id,
          description=charge_data.description,
          amount=charge_data.amount,
          kind=charge_data.kind,
     )
     invoice = storage.get_invoice(db, invoice_id, tenant_id)
     return ChargeAddedResponse(
          charge=ChargeResponse.model_validate(charge),
          totals=_build_totals_response(invoice, totals),
     )


@router.delete(
     "/{invoice_id}/charges/{charge_id}",
     response_model=InvoiceTotalsResponse,
     summary="Remove a charge from an invoice"
)
def delete_charge(
     invoice_id: int,
     charge_id: int,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     totals = InvoiceService.delete_charge(db, tenant_id, invoice_id, charge_id)
     invoice = storage.get_invoice(db, invoice_id, tenant_id)
     return _build_totals_response(invoice, totals)


@router.post(
     "/{invoice_id}/cancel",
     response_model=InvoiceResponse,
     summary="Cancel an unpaid invoice"
)
def cancel_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     invoice = InvoiceService.cancel_invoice(db, tenant_id, invoice_id)
     return _build_invoice_response(invoice)


@router.post(
     "/{invoice_id}/remind",
     response_model=ReminderResponse,
     summary="Email a payment reminder to the renter"
)
def send_reminder(
     invoice_id: int,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     """
     Send the overdue notice for overdue invoices and the due-soon notice
     otherwise. Answers 400 when the renter has no email address.
     """
     kind = InvoiceService.send_reminder(db, tenant_id, invoice_id)
     return ReminderResponse(invoice_id=invoice_id, kind=kind)


@router.delete(
     "/{invoice_id}",
     status_code=status.HTTP_204_NO_CONTENT,
     summary="Delete invoice"
)
def delete_invoice(
     invoice_id: int,
     cascade_payments: bool = Query(False, description="Also delete the invoice's payments"),
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id),
     token: dict = Depends(require_manager)
):
     """
     Delete an invoice and its charges.

     Note: an invoice with payments is only removed with cascade_payments=true,
     which permanently removes those payments too.
     """
     InvoiceService.delete_invoice(db, tenant_id, invoice_id, cascade_payments=cascade_payments)
