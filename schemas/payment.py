# schemas/payment.py
"""
Pydantic schemas for payment API.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models import InvoiceStatus
from schemas.common import Money


class PaymentCreate(BaseModel):
     """Request body for POST /api/payments."""

     invoice_id: int = Field(..., gt=0, description="Invoice the money is applied to")
     amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2, description="Cannot exceed the balance due")
     payment_date: date
     method: str = Field(..., min_length=1, max_length=50, description="transfer, cash, card, ...")
     receipt_url: Optional[str] = Field(None, max_length=500)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "invoice_id": 1,
                    "amount": "800.00",
                    "payment_date": "2024-01-04",
                    "method": "transfer",
                    "receipt_url": None,
               }
          }
     )


class PaymentUpdate(BaseModel):
     """Request body for PATCH /api/payments/{id}. Only provided fields change."""

     amount: Optional[Decimal] = Field(None, gt=0, max_digits=15, decimal_places=2)
     payment_date: Optional[date] = None
     method: Optional[str] = Field(None, min_length=1, max_length=50)
     receipt_url: Optional[str] = Field(None, max_length=500)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "amount": "900.00",
               }
          }
     )


class PaymentResponse(BaseModel):
     """A payment plus the invoice state it left behind."""

     id: int
     tenant_id: int
     invoice_id: int
     amount: Money
     payment_date: date
     method: str
     receipt_url: Optional[str] = None
     created_at: Optional[datetime] = None
     invoice_status: Optional[InvoiceStatus] = None
     invoice_amount_paid: Optional[Money] = None
     invoice_balance_due: Optional[Money] = None

     model_config = ConfigDict(
          from_attributes=True,
          json_schema_extra={
               "example": {
                    "id": 1,
                    "tenant_id": 1,
                    "invoice_id": 1,
                    "amount": "800.00",
                    "payment_date": "2024-01-04",
                    "method": "transfer",
                    "receipt_url": None,
                    "invoice_status": "partial",
                    "invoice_amount_paid": "800.00",
                    "invoice_balance_due": "200.00",
               }
          }
     )


class PaymentListResponse(BaseModel):
     payments: List[PaymentResponse]
     total: int


class PaymentDeleteResponse(BaseModel):
     invoice_id: int
     invoice_status: InvoiceStatus
     invoice_amount_paid: Money
