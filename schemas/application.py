from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from services.workflow import status_note

DEFAULT_LOAN_TYPE = "Personal"

_RECORD_CONFIG = {"populate_by_name": True, "alias_generator": to_camel, "from_attributes": True}


class LoanApplicationRecord(BaseModel):
    """Canonical application row, whichever backend it came from."""

    id: str
    application_id: str
    customer_id: Optional[str] = None
    customer_name: str
    loan_amount: float
    status: str
    loan_type: Optional[str] = None
    rejection_reason: Optional[str] = None
    evidence_required: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = _RECORD_CONFIG

    @property
    def display_loan_type(self) -> str:
        return self.loan_type or DEFAULT_LOAN_TYPE

    @property
    def status_note(self) -> Optional[str]:
        return status_note(self.status, self.rejection_reason, self.evidence_required)


class ApplicationCreate(BaseModel):
    customer_name: str = Field(..., alias="customerName")
    loan_amount: float = Field(..., alias="loanAmount")
    loan_type: Optional[str] = Field(None, alias="loanType")

    model_config = {"populate_by_name": True}


class StatusUpdate(BaseModel):
    status: str
    rejection_reason: Optional[str] = Field(None, alias="rejectionReason")
    evidence_required: Optional[str] = Field(None, alias="evidenceRequired")

    model_config = {"populate_by_name": True}


class ApplicationPage(BaseModel):
    items: list[LoanApplicationRecord]
    total_count: int
    total_pages: int
    page: int
    page_size: int

    model_config = _RECORD_CONFIG

    @classmethod
    def empty(cls, page: int, page_size: int) -> "ApplicationPage":
        return cls(items=[], total_count=0, total_pages=0, page=page, page_size=page_size)
