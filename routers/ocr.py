# routers/ocr.py
"""
OCR review API.

The extraction worker posts its results here; a reviewer then bills an
extracted utility amount, either as a charge on an existing invoice or
as a new invoice on a contract.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import get_tenant_id
from models import OcrStatus
from schemas.invoice import ChargeResponse, InvoiceResponse, InvoiceTotalsResponse
from schemas.ocr import (
     OcrApproveRequest,
     OcrApproveResponse,
     OcrCreateInvoiceRequest,
     OcrFailureCreate,
     OcrLogResponse,
     OcrResultCreate,
)
from services import ocr_service, storage

router = APIRouter(prefix="/api/ocr", tags=["ocr"])


@router.post(
     "",
     response_model=OcrLogResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Record an extraction result"
)
def record_result(
     body: OcrResultCreate,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     """
     Store an extraction result. Confidence above 80 is marked ok,
     anything else needs_review.
     """
     ocr_log = ocr_service.record_ocr_result(
          db,
          tenant_id,
          file_url=body.file_url,
          provider=body.provider,
          confidence=body.confidence,
          extracted_amount=body.extracted_amount,
          extracted_reference=body.extracted_reference,
          period_start=body.period_start,
          period_end=body.period_end,
     )
     db.commit()
     return OcrLogResponse.model_validate(ocr_log)


@router.post(
     "/failures",
     response_model=OcrLogResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Record a failed extraction"
)
def record_failure(
     body: OcrFailureCreate,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     ocr_log = ocr_service.record_ocr_failure(db, tenant_id, body.file_url, body.provider, body.message)
     db.commit()
     return OcrLogResponse.model_validate(ocr_log)


@router.get(
     "/logs",
     response_model=List[OcrLogResponse],
     summary="List OCR logs"
)
def list_ocr_logs(
     status: Optional[OcrStatus] = Query(None, description="Filter by review status"),
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     """
     The organization's extraction results, newest first.
     """
     return [OcrLogResponse.model_validate(log) for log in storage.list_ocr_logs(db, tenant_id, status=status)]


@router.get(
     "/{ocr_log_id}",
     response_model=OcrLogResponse,
     summary="Get OCR log by ID"
)
def get_ocr_log(
     ocr_log_id: int,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     return OcrLogResponse.model_validate(storage.get_ocr_log(db, ocr_log_id, tenant_id))


@router.post(
     "/{ocr_log_id}/approve",
     response_model=OcrApproveResponse,
     summary="Add the extracted amount to an invoice"
)
def approve_charge(
     ocr_log_id: int,
     body: OcrApproveRequest,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     """
     Attach the OCR result to an invoice as an extra charge.

     - **description**: defaults to "Cargo adicional - {reference}"
     - **amount**: defaults to the extracted amount
     """
     charge, totals = ocr_service.approve_ocr_charge(
          db,
          tenant_id,
          ocr_log_id,
          body.invoice_id,
          description=body.description,
          amount=body.amount,
     )
     invoice = storage.get_invoice(db, body.invoice_id, tenant_id)
     return OcrApproveResponse(
          ocr_log_id=ocr_log_id,
          charge=ChargeResponse.model_validate(charge),
          totals=InvoiceTotalsResponse(
               invoice_id=invoice.id,
               subtotal=totals.subtotal,
               late_fee=totals.late_fee,
               total=totals.total,
               amount_paid=invoice.amount_paid,
               status=invoice.status,
          ),
     )


@router.post(
     "/{ocr_log_id}/create-invoice",
     response_model=InvoiceResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Bill the extracted amount as a new invoice"
)
def create_invoice(
     ocr_log_id: int,
     body: OcrCreateInvoiceRequest,
     db: Session = Depends(get_session),
     tenant_id: int = Depends(get_tenant_id)
):
     """
     Create an invoice on the contract, issued today and due in 15 days.
     """
     invoice = ocr_service.create_invoice_from_ocr(db, tenant_id, ocr_log_id, body.contract_id)
     db.commit()
     return InvoiceResponse.model_validate(storage.get_invoice(db, invoice.id, tenant_id))
