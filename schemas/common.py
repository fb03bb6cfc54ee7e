# schemas/common.py
"""
Shared schema types.

Money crosses the API as a decimal string with two fractional digits,
e.g. "1500000.00"; requests may send strings or numbers.
"""
from decimal import Decimal
from typing import Annotated

from pydantic import PlainSerializer

from utils.money import format_amount

Money = Annotated[Decimal, PlainSerializer(format_amount, return_type=str, when_used="always")]
