# models/__init__.py
from .base import Base
from .tenant import Tenant, TenantStatus
from .contact import Contact, ContactKind
from .property import Property
from .contract import Contract, ContractStatus, LateFeeType, ACTIVE_FAMILY
from .invoice import Invoice, InvoiceCharge, InvoiceStatus, ChargeKind
from .payment import Payment
from .ocr_log import OcrLog, OcrStatus

__all__ = [
     "Base",
     "Tenant",
     "TenantStatus",
     "Contact",
     "ContactKind",
     "Property",
     "Contract",
     "ContractStatus",
     "LateFeeType",
     "ACTIVE_FAMILY",
     "Invoice",
     "InvoiceCharge",
     "InvoiceStatus",
     "ChargeKind",
     "Payment",
     "OcrLog",
     "OcrStatus",
]
