"""
Form validation predicates. Pure functions; the data access layer re-checks them
before anything reaches the backend.
"""
from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

MIN_LOAN_AMOUNT = 100
MAX_LOAN_AMOUNT = 100_000


def _as_number(value: Any) -> Optional[float]:
    """Coerce form input to a float; None for anything that is not a number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def to_cents(value: Any) -> Optional[float]:
    """Round form input to whole cents, the precision amounts are stored at. None if not a number."""
    number = _as_number(value)
    if number is None or math.isinf(number):
        return number
    try:
        return float(Decimal(str(number)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        # too large to quantize; left unrounded
        return number


def validate_name(name: Optional[str]) -> bool:
    return isinstance(name, str) and len(name.strip()) >= 2


def validate_loan_amount(amount: Any) -> bool:
    number = _as_number(amount)
    return number is not None and MIN_LOAN_AMOUNT <= number <= MAX_LOAN_AMOUNT


def validate_payment_amount(amount: Any) -> bool:
    number = _as_number(amount)
    return number is not None and number > 0 and not math.isinf(number)


def validate_application_id(application_id: Optional[str]) -> bool:
    return isinstance(application_id, str) and application_id != ""
