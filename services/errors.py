"""
Domain errors raised by the data access layer and mapped to HTTP responses in main.py.
"""
from __future__ import annotations

from typing import Optional


class LoanDeskError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(LoanDeskError):
    status_code = 503


class AuthRequiredError(LoanDeskError):
    status_code = 401

    def __init__(self, message: str = "You must be signed in to do that"):
        super().__init__(message)


class AuthError(LoanDeskError):
    """Rejected credentials or a failed sign-up."""

    status_code = 401

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class ValidationError(LoanDeskError):
    status_code = 422

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class InvalidTransitionError(ValidationError):
    def __init__(self, current: str, target: str):
        super().__init__("status", f"Cannot move an application from {current} to {target}")
        self.current = current
        self.target = target


class PermissionDeniedError(LoanDeskError):
    status_code = 403


class BackendError(LoanDeskError):
    status_code = 502


class SubmissionError(BackendError):
    pass
