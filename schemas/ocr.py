# schemas/ocr.py
"""
Pydantic schemas for the OCR review API.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from models import OcrStatus
from schemas.common import Money
from schemas.invoice import ChargeResponse, InvoiceTotalsResponse


class OcrResultCreate(BaseModel):
     """Extractor output posted by the OCR worker."""
     file_url: str = Field(..., min_length=1, max_length=500)
     provider: str = Field(..., min_length=1, max_length=50, description="textract, vision, ...")
     confidence: Decimal = Field(..., ge=0, le=100, description="Mean confidence, 0-100")
     extracted_amount: Optional[Decimal] = Field(None, max_digits=15, decimal_places=2)
     extracted_reference: Optional[str] = Field(None, max_length=255)
     period_start: Optional[date] = None
     period_end: Optional[date] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "file_url": "https://files.example.com/bills/agua-2024-01.pdf",
                    "provider": "textract",
                    "confidence": "92.5",
                    "extracted_amount": "85000.00",
                    "extracted_reference": "Agua",
                    "period_start": "2024-01-01",
                    "period_end": "2024-01-31"
               }
          }
     )


class OcrLogResponse(BaseModel):
     id: int
     tenant_id: int
     file_url: str
     provider: str
     confidence: Optional[Money] = None
     status: OcrStatus
     extracted_amount: Optional[Money] = None
     extracted_reference: Optional[str] = None
     extracted_period_start: Optional[date] = None
     extracted_period_end: Optional[date] = None
     message: Optional[str] = None
     created_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)


class OcrApproveRequest(BaseModel):
     """Attach the OCR result to an invoice; description and amount override the extraction."""
     invoice_id: int = Field(..., gt=0)
     description: Optional[str] = Field(None, min_length=1, max_length=500)
     amount: Optional[Decimal] = Field(None, gt=0, max_digits=15, decimal_places=2)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "invoice_id": 1,
                    "description": "Cargo adicional - Agua enero"
               }
          }
     )


class OcrApproveResponse(BaseModel):
     ocr_log_id: int
     charge: ChargeResponse
     totals: InvoiceTotalsResponse


class OcrCreateInvoiceRequest(BaseModel):
     contract_id: int = Field(..., gt=0)


class OcrFailureCreate(BaseModel):
     """Posted by the OCR worker when extraction failed."""
     file_url: str = Field(..., min_length=1, max_length=500)
     provider: str = Field(..., min_length=1, max_length=50)
     message: str = Field(..., min_length=1)
