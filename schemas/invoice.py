# schemas/invoice.py
"""
Pydantic schemas for Invoice API request/response validation.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models import ChargeKind, InvoiceStatus
from schemas.common import Money


class ChargeCreate(BaseModel):
     """A line item. Only adjustment charges may be negative (credits)."""
     description: str = Field(..., min_length=1, max_length=500)
     amount: Decimal = Field(..., max_digits=15, decimal_places=2)
     kind: ChargeKind = ChargeKind.OTHER

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "description": "Cargo adicional - Agua",
                    "amount": "85000.00",
                    "kind": "other"
               }
          }
     )


class ChargeResponse(BaseModel):
     id: int
     kind: ChargeKind
     description: str
     amount: Money

     model_config = ConfigDict(from_attributes=True)


class InvoiceCreate(BaseModel):
     """Schema for creating a manual invoice on a contract."""
     contract_id: int = Field(..., gt=0, description="Contract ID (must exist)")
     number: str = Field(..., min_length=1, max_length=80)
     issue_date: date
     due_date: date
     charges: List[ChargeCreate] = Field(..., min_length=1)
     tax: Decimal = Field(Decimal("0"), ge=0, max_digits=15, decimal_places=2)
     other_charges: Decimal = Field(Decimal("0"), ge=0, max_digits=15, decimal_places=2)
     status: InvoiceStatus = InvoiceStatus.ISSUED

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "contract_id": 1,
                    "number": "CT-2024-001-EXTRA-1",
                    "issue_date": "2024-02-10",
                    "due_date": "2024-02-25",
                    "charges": [{"description": "Reparación", "amount": "120000.00", "kind": "other"}],
                    "tax": "0.00",
                    "other_charges": "0.00",
                    "status": "issued"
               }
          }
     )


class InvoiceUpdate(BaseModel):
     """Header fields that stay editable after creation; omitted fields are left alone."""
     tax: Optional[Decimal] = Field(None, ge=0, max_digits=15, decimal_places=2)
     other_charges: Optional[Decimal] = Field(None, ge=0, max_digits=15, decimal_places=2)
     due_date: Optional[date] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "tax": "19000.00",
                    "due_date": "2024-01-10"
               }
          }
     )


class InvoiceResponse(BaseModel):
     """Schema for invoice response."""
     id: int
     tenant_id: int
     contract_id: int
     tenant_contact_id: int
     number: str
     issue_date: date
     due_date: date
     subtotal: Money
     tax: Money
     other_charges: Money
     late_fee: Money
     total_amount: Money
     amount_paid: Money
     balance_due: Money
     status: InvoiceStatus
     late_fee_applied_at: Optional[datetime] = None
     charges: List[ChargeResponse] = []
     created_at: Optional[datetime] = None

     model_config = ConfigDict(
          from_attributes=True,
          json_schema_extra={
               "example": {
                    "id": 1,
                    "tenant_id": 1,
                    "contract_id": 1,
                    "tenant_contact_id": 2,
                    "number": "CT-2024-001-001",
                    "issue_date": "2024-01-01",
                    "due_date": "2024-01-05",
                    "subtotal": "1000000.00",
                    "tax": "0.00",
                    "other_charges": "0.00",
                    "late_fee": "100000.00",
                    "total_amount": "1100000.00",
                    "amount_paid": "0.00",
                    "balance_due": "1100000.00",
                    "status": "overdue",
                    "charges": [
                         {"id": 1, "kind": "rent", "description": "Canon de Arrendamiento - enero de 2024", "amount": "1000000.00"},
                         {"id": 2, "kind": "late_fee", "description": "Mora por pago tardío (10%)", "amount": "100000.00"}
                    ]
               }
          }
     )


class InvoiceListResponse(BaseModel):
     """Schema for paginated invoice list response."""
     invoices: List[InvoiceResponse]
     total: int
     page: int = 1
     page_size: int = 50

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "invoices": [],
                    "total": 0,
                    "page": 1,
                    "page_size": 50
               }
          }
     )


class InvoiceTotalsResponse(BaseModel):
     """Totals after a recalculation or a charge change."""
     invoice_id: int
     subtotal: Money
     late_fee: Money
     total: Money
     amount_paid: Money
     status: InvoiceStatus


class ChargeAddedResponse(BaseModel):
     charge: ChargeResponse
     totals: InvoiceTotalsResponse


class StatusBucket(BaseModel):
     count: int
     amount: str


class InvoiceSummaryResponse(BaseModel):
     """Per-status counts and amounts for the caller's tenant."""
     tenant_id: int
     total_invoices: int
     total_billed: str
     total_collected: str
     total_outstanding: str
     by_status: Dict[str, StatusBucket]


class ReminderResponse(BaseModel):
     invoice_id: int
     kind: str = Field(..., description="due_soon or overdue")
     message: str = "Reminder sent successfully"
