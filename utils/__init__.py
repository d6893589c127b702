"""Shared utilities for the backend."""
from utils.formatters import format_currency, format_date, format_datetime, status_tone
from utils.identifiers import generate_id
from utils.validators import (
    to_cents,
    validate_application_id,
    validate_loan_amount,
    validate_name,
    validate_payment_amount,
)

__all__ = [
    "format_currency",
    "format_date",
    "format_datetime",
    "status_tone",
    "generate_id",
    "to_cents",
    "validate_application_id",
    "validate_loan_amount",
    "validate_name",
    "validate_payment_amount",
]
