"""
Loan application status workflow.

    Pending ──> Approved | Rejected | Evidence Required
    Evidence Required ──> Approved | Rejected

Approved and Rejected are terminal on the review board. The data layer only
blocks moves out of them when the workflow is strict.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from services.errors import InvalidTransitionError, ValidationError


class ApplicationStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    EVIDENCE_REQUIRED = "Evidence Required"


TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    ApplicationStatus.PENDING: frozenset(
        {ApplicationStatus.APPROVED, ApplicationStatus.REJECTED, ApplicationStatus.EVIDENCE_REQUIRED}
    ),
    ApplicationStatus.EVIDENCE_REQUIRED: frozenset({ApplicationStatus.APPROVED, ApplicationStatus.REJECTED}),
    ApplicationStatus.APPROVED: frozenset(),
    ApplicationStatus.REJECTED: frozenset(),
}

# Board actions in display order
_ACTION_ORDER = (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED, ApplicationStatus.EVIDENCE_REQUIRED)


@dataclass(frozen=True)
class StatusChange:
    """Exact column values written by one status update."""

    status: ApplicationStatus
    rejection_reason: Optional[str] = None
    evidence_required: Optional[str] = None

    def as_fields(self) -> dict[str, Optional[str]]:
        return {
            "status": self.status.value,
            "rejection_reason": self.rejection_reason,
            "evidence_required": self.evidence_required,
        }


def parse_status(value: str) -> ApplicationStatus:
    try:
        return ApplicationStatus(value)
    except ValueError:
        raise ValidationError("status", f"Unknown application status: {value!r}") from None


def is_terminal(status: ApplicationStatus) -> bool:
    return not TRANSITIONS[status]


def available_actions(status: str) -> list[ApplicationStatus]:
    allowed = TRANSITIONS.get(parse_status(status), frozenset())
    return [s for s in _ACTION_ORDER if s in allowed]


def status_note(status: str, rejection_reason: Optional[str], evidence_required: Optional[str]) -> Optional[str]:
    """The reason text that belongs to the current status, if any."""
    if status == ApplicationStatus.REJECTED.value:
        return rejection_reason or None
    if status == ApplicationStatus.EVIDENCE_REQUIRED.value:
        return evidence_required or None
    return None


class StatusWorkflow:
    def __init__(self, strict: bool = False):
        self.strict = strict

    def plan(
        self,
        current: str,
        target: str,
        rejection_reason: Optional[str] = None,
        evidence_required: Optional[str] = None,
    ) -> StatusChange:
        """
        Validate a move and return the fields to write. The reason that does not
        belong to the target status is cleared.
        """
        current_status = parse_status(current)
        target_status = parse_status(target)

        if self.strict and target_status not in TRANSITIONS[current_status]:
            raise InvalidTransitionError(current_status.value, target_status.value)

        if target_status is ApplicationStatus.REJECTED:
            reason = (rejection_reason or "").strip()
            if not reason:
                raise ValidationError("rejectionReason", "A rejection reason is required")
            return StatusChange(target_status, rejection_reason=reason)

        if target_status is ApplicationStatus.EVIDENCE_REQUIRED:
            evidence = (evidence_required or "").strip()
            if not evidence:
                raise ValidationError("evidenceRequired", "Describe the evidence required")
            return StatusChange(target_status, evidence_required=evidence)

        return StatusChange(target_status)
