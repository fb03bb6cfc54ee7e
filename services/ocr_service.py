# services/ocr_service.py
"""
OCR Service - turning extracted utility-bill data into billing records.

Text extraction itself happens in an external worker; it hands its
results to record_ocr_result() / record_ocr_failure(). A reviewer then
either attaches the extracted amount to an existing invoice as a charge,
or bills it as a new invoice on a contract.
"""
import logging
from datetime import date, timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from models import ChargeKind, Invoice, InvoiceCharge, InvoiceStatus, OcrLog, OcrStatus
from services import storage
from services.errors import ValidationError
from services.invoice_service import InvoiceService, InvoiceTotals
from services.locks import invoice_guard
from services.validation import require_positive
from utils.money import format_amount, quantize

logger = logging.getLogger(__name__)

# Mean extractor confidence (0-100) above which a result needs no review
CONFIDENCE_THRESHOLD = 80
OCR_INVOICE_DUE_DAYS = 15


def record_ocr_result(
     db: Session,
     tenant_id: int,
     file_url: str,
     provider: str,
     confidence,
     extracted_amount=None,
     extracted_reference: Optional[str] = None,
     period_start: Optional[date] = None,
     period_end: Optional[date] = None,
) -> OcrLog:
     """Store what the extractor found; low-confidence results are flagged for review."""
     confidence = quantize(confidence)
     ok = confidence > CONFIDENCE_THRESHOLD
     ocr_log = OcrLog(
          tenant_id=tenant_id,
          file_url=file_url,
          provider=provider,
          confidence=confidence,
          status=OcrStatus.OK if ok else OcrStatus.NEEDS_REVIEW,
          extracted_amount=quantize(extracted_amount) if extracted_amount is not None else None,
          extracted_reference=extracted_reference,
          extracted_period_start=period_start,
          extracted_period_end=period_end,
          message="Processed" if ok else "Needs manual review",
     )
     db.add(ocr_log)
     db.flush()
     logger.info("Recorded OCR result %s (confidence=%s)", ocr_log.id, format_amount(confidence))
     return ocr_log


def record_ocr_failure(db: Session, tenant_id: int, file_url: str, provider: str, message: str) -> OcrLog:
     ocr_log = OcrLog(
          tenant_id=tenant_id,
          file_url=file_url,
          provider=provider,
          status=OcrStatus.ERROR,
          message=message,
     )
     db.add(ocr_log)
     db.flush()
     logger.warning("OCR failed for %s: %s", file_url, message)
     return ocr_log


def _extracted_amount(ocr_log: OcrLog):
     if ocr_log.extracted_amount is None:
          raise ValidationError("No amount extracted from OCR")
     return ocr_log.extracted_amount


def approve_ocr_charge(
     db: Session,
     tenant_id: int,
     ocr_log_id: int,
     invoice_id: int,
     description: Optional[str] = None,
     amount=None,
) -> Tuple[InvoiceCharge, InvoiceTotals]:
     """
     Attach an OCR result to an invoice as an extra charge and recompute
     the invoice totals. The reviewer may override description and amount.

     Raises:
          NotFoundError: If the OCR log or invoice is not in the tenant's scope
          ValidationError: If there is no amount to charge
     """
     ocr_log = storage.get_ocr_log(db, ocr_log_id, tenant_id)
     value = require_positive("Charge amount", amount if amount is not None else _extracted_amount(ocr_log))
     description = description or f"Cargo adicional - {ocr_log.extracted_reference or 'Servicios'}"

     with invoice_guard(db, invoice_id, tenant_id) as invoice:
          if invoice.status == InvoiceStatus.CANCELLED:
               raise ValidationError(f"Invoice {invoice.number} is cancelled")
          charge = InvoiceCharge(kind=ChargeKind.OTHER, description=description, amount=value)
          invoice.charges.append(charge)
          totals = InvoiceService.apply_charge_totals(db, invoice)
          ocr_log.status = OcrStatus.OK
          ocr_log.message = f"Charge added to invoice {invoice.number}"

     logger.info("Approved OCR log %s as charge on invoice %s", ocr_log_id, invoice.number)
     return charge, totals


def create_invoice_from_ocr(
     db: Session,
     tenant_id: int,
     ocr_log_id: int,
     contract_id: int,
     today: Optional[date] = None,
) -> Invoice:
     """
     Bill an OCR result as a new invoice on a contract, issued today and
     due in OCR_INVOICE_DUE_DAYS days.
     """
     today = today or date.today()
     ocr_log = storage.get_ocr_log(db, ocr_log_id, tenant_id)
     amount = _extracted_amount(ocr_log)
     contract = storage.get_contract(db, contract_id, tenant_id)

     invoice = InvoiceService.create_invoice(
          db,
          tenant_id=tenant_id,
          contract_id=contract.id,
          number=f"{contract.number}-OCR-{ocr_log.id:06d}",
          issue_date=today,
          due_date=today + timedelta(days=OCR_INVOICE_DUE_DAYS),
          charges=[{
               "kind": ChargeKind.OTHER,
               "description": f"Cargo adicional - {ocr_log.extracted_reference or 'Servicios'}",
               "amount": amount,
          }],
     )
     ocr_log.status = OcrStatus.OK
     ocr_log.message = f"Invoice {invoice.number} created"
     db.flush()

     logger.info("Created invoice %s from OCR log %s", invoice.number, ocr_log_id)
     return invoice
