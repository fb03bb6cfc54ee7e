# schemas/contract.py
"""
Pydantic schemas for Contract API request/response validation.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models import ContractStatus, LateFeeType
from schemas.common import Money


class ContractCreate(BaseModel):
     """Schema for creating a new contract (draft or signed)."""
     number: str = Field(..., min_length=1, max_length=50, description="Contract number, unique per tenant")
     property_id: int = Field(..., gt=0, description="Leased property")
     tenant_contact_id: int = Field(..., gt=0, description="Renter (payer)")
     owner_contact_id: int = Field(..., gt=0, description="Property owner")
     start_date: date
     end_date: date
     rent_amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
     payment_day: int = Field(..., ge=1, le=30, description="Day of month rent is due")
     late_fee_type: LateFeeType = LateFeeType.NONE
     late_fee_value: Optional[Decimal] = Field(None, ge=0, max_digits=15, decimal_places=2)
     status: ContractStatus = ContractStatus.DRAFT

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "number": "CT-2024-001",
                    "property_id": 1,
                    "tenant_contact_id": 2,
                    "owner_contact_id": 1,
                    "start_date": "2024-01-01",
                    "end_date": "2024-03-31",
                    "rent_amount": "1500000.00",
                    "payment_day": 5,
                    "late_fee_type": "percent",
                    "late_fee_value": "10",
                    "status": "signed"
               }
          }
     )


class ContractUpdate(BaseModel):
     """Schema for updating an existing contract. Only provided fields change."""
     number: Optional[str] = Field(None, min_length=1, max_length=50)
     property_id: Optional[int] = Field(None, gt=0)
     tenant_contact_id: Optional[int] = Field(None, gt=0)
     owner_contact_id: Optional[int] = Field(None, gt=0)
     start_date: Optional[date] = None
     end_date: Optional[date] = None
     rent_amount: Optional[Decimal] = Field(None, gt=0, max_digits=15, decimal_places=2)
     payment_day: Optional[int] = Field(None, ge=1, le=30)
     late_fee_type: Optional[LateFeeType] = None
     late_fee_value: Optional[Decimal] = Field(None, ge=0, max_digits=15, decimal_places=2)
     status: Optional[ContractStatus] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "status": "expiring"
               }
          }
     )


class ContractResponse(BaseModel):
     """Schema for contract response."""
     id: int
     tenant_id: int
     number: str
     property_id: int
     tenant_contact_id: int
     owner_contact_id: int
     start_date: date
     end_date: date
     rent_amount: Money
     payment_day: int
     late_fee_type: LateFeeType
     late_fee_value: Optional[Money] = None
     status: ContractStatus
     invoices_generated: bool
     created_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)


class ContractListResponse(BaseModel):
     contracts: List[ContractResponse]
     total: int


class ContractActivationResponse(BaseModel):
     """Result of POST /api/contracts/{id}/activate."""
     contract: ContractResponse
     invoices_created: int = Field(..., description="Invoices created by this call (0 on re-activation)")
     invoice_ids: List[int]

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "contract": {"id": 1, "number": "CT-2024-001", "status": "active"},
                    "invoices_created": 3,
                    "invoice_ids": [1, 2, 3]
               }
          }
     )
