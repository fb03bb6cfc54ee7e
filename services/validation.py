# services/validation.py
"""Input rules shared by the contract and invoice services."""
from datetime import date
from decimal import Decimal

from models import LateFeeType
from services.errors import ValidationError
from utils.money import quantize, Amount

MIN_PAYMENT_DAY = 1
MAX_PAYMENT_DAY = 30


def require_positive(field: str, value: Amount) -> Decimal:
     amount = quantize(value)
     if amount <= 0:
          raise ValidationError(f"{field} must be greater than zero")
     return amount


def require_non_negative(field: str, value: Amount) -> Decimal:
     amount = quantize(value)
     if amount < 0:
          raise ValidationError(f"{field} cannot be negative")
     return amount


def require_date_range(start_date: date, end_date: date) -> None:
     if start_date is None or end_date is None:
          raise ValidationError("Start date and end date are required")
     if start_date > end_date:
          raise ValidationError(
               f"Start date {start_date.isoformat()} is after end date {end_date.isoformat()}"
          )


def validate_contract_terms(
     start_date: date,
     end_date: date,
     rent_amount: Amount,
     payment_day: int,
     late_fee_type: LateFeeType = LateFeeType.NONE,
     late_fee_value: Amount = None,
) -> None:
     """Raise ValidationError when a lease cannot be billed as written."""
     require_date_range(start_date, end_date)
     require_positive("Rent amount", rent_amount)
     if payment_day is None or not (MIN_PAYMENT_DAY <= int(payment_day) <= MAX_PAYMENT_DAY):
          raise ValidationError(
               f"Payment day must be between {MIN_PAYMENT_DAY} and {MAX_PAYMENT_DAY}"
          )
     if late_fee_type in (LateFeeType.FIXED, LateFeeType.PERCENT) and late_fee_value is not None:
          require_non_negative("Late fee value", late_fee_value)
