# utils/money.py
"""
Fixed-point money helpers.

All monetary values are handled as Decimal and rounded half-up to two
places at every derived-total boundary. Floats are never accepted.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional, Union

from services.errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Amount = Union[str, int, Decimal]


def to_decimal(value: Optional[Amount]) -> Decimal:
     """Parse an amount; None and empty strings count as zero."""
     if value is None:
          return ZERO
     if isinstance(value, bool) or isinstance(value, float):
          raise ValidationError(f"Amount must be a decimal string, got {value!r}")
     if isinstance(value, Decimal):
          result = value
     else:
          text = str(value).strip()
          if not text:
               return ZERO
          try:
               result = Decimal(text)
          except InvalidOperation:
               raise ValidationError(f"Invalid amount: {value!r}")
     if not result.is_finite():
          raise ValidationError(f"Invalid amount: {value!r}")
     return result


def quantize(value: Optional[Amount]) -> Decimal:
     return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_amount(value: Optional[Amount]) -> str:
     """Canonical two-decimal string, e.g. "1500000.00"."""
     return f"{quantize(value):f}"


def sum_amounts(values: Iterable[Optional[Amount]]) -> Decimal:
     total = ZERO
     for value in values:
          total += to_decimal(value)
     return quantize(total)


def percent_of(amount: Optional[Amount], percent: Optional[Amount]) -> Decimal:
     return quantize(to_decimal(amount) * to_decimal(percent) / Decimal(100))
