# services/__init__.py
# Service modules import utils.money, which imports errors from here;
# keep this package init limited to the error types.
from .errors import BillingError, ConflictError, NotFoundError, ValidationError

__all__ = [
     "BillingError",
     "ConflictError",
     "NotFoundError",
     "ValidationError",
]
