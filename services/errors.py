# services/errors.py
"""
Errors raised by the billing services.

Services raise these; the HTTP layer translates them (see main.py).
"""
from decimal import Decimal
from typing import Optional


class BillingError(Exception):
     """Base class for all service-level failures."""

     status_code = 400

     def __init__(self, message: str):
          super().__init__(message)
          self.message = message


class NotFoundError(BillingError, LookupError):
     """Entity missing or outside the caller's tenant scope."""

     status_code = 404


class ValidationError(BillingError, ValueError):
     """Bad amounts, dates, overpayments and other rejected input."""

     status_code = 400

     def __init__(self, message: str, balance_due: Optional[Decimal] = None):
          super().__init__(message)
          self.balance_due = balance_due


class ConflictError(BillingError):
     """Overlapping active contracts, deleting invoices that carry payments."""

     status_code = 409
