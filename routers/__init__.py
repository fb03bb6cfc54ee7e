# routers/__init__.py
from . import contracts, invoices, ocr, payments

__all__ = ["contracts", "invoices", "ocr", "payments"]
