"""Display helpers shared by API responses and the admin board."""
from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

_STATUS_TONES = {
    "Approved": "green",
    "Rejected": "red",
    "Evidence Required": "blue",
}


def format_currency(amount: Union[int, float, Decimal]) -> str:
    """USD with thousands separators and two decimals, e.g. $12,500.00 or -$3.10."""
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_datetime(value: datetime) -> str:
    """e.g. Mar 4, 2025, 9:05 PM"""
    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    return f"{value:%b} {value.day}, {value.year}, {hour}:{value:%M} {meridiem}"


def format_date(value: datetime) -> str:
    return f"{value:%b} {value.day}, {value.year}"


def status_tone(status: str) -> str:
    # Pending and anything unknown share the amber badge
    return _STATUS_TONES.get(status, "amber")
