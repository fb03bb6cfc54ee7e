# schemas/__init__.py
from .common import Money
from .contract import (
     ContractCreate,
     ContractUpdate,
     ContractResponse,
     ContractListResponse,
     ContractActivationResponse,
)
from .invoice import (
     ChargeCreate,
     ChargeResponse,
     InvoiceCreate,
     InvoiceUpdate,
     InvoiceResponse,
     InvoiceListResponse,
     InvoiceTotalsResponse,
     ChargeAddedResponse,
     InvoiceSummaryResponse,
     ReminderResponse,
)
from .payment import (
     PaymentCreate,
     PaymentUpdate,
     PaymentResponse,
     PaymentListResponse,
     PaymentDeleteResponse,
)
from .ocr import (
     OcrResultCreate,
     OcrFailureCreate,
     OcrLogResponse,
     OcrApproveRequest,
     OcrApproveResponse,
     OcrCreateInvoiceRequest,
)

__all__ = [
     "Money",
     "ContractCreate",
     "ContractUpdate",
     "ContractResponse",
     "ContractListResponse",
     "ContractActivationResponse",
     "ChargeCreate",
     "ChargeResponse",
     "InvoiceCreate",
     "InvoiceUpdate",
     "InvoiceResponse",
     "InvoiceListResponse",
     "InvoiceTotalsResponse",
     "ChargeAddedResponse",
     "InvoiceSummaryResponse",
     "ReminderResponse",
     "PaymentCreate",
     "PaymentUpdate",
     "PaymentResponse",
     "PaymentListResponse",
     "PaymentDeleteResponse",
     "OcrResultCreate",
     "OcrFailureCreate",
     "OcrLogResponse",
     "OcrApproveRequest",
     "OcrApproveResponse",
     "OcrCreateInvoiceRequest",
]
