"""
Review board state for administrators.

Status changes are applied to the local list immediately, sent to the backend
as one update, then reconciled by reloading. A failed update puts the row
back the way it was. Results that arrive after close() or after a newer
load() are dropped.
"""
from __future__ import annotations

import logging
from typing import Optional

from schemas.application import LoanApplicationRecord
from services.errors import BackendError, LoanDeskError
from services.loan_service import LoanDataService
from services.workflow import ApplicationStatus, available_actions

logger = logging.getLogger(__name__)


class ApplicationBoard:
    def __init__(self, service: LoanDataService):
        self.service = service
        self.applications: list[LoanApplicationRecord] = []
        self.status_filter: Optional[str] = None
        self.search_term = ""
        self.is_loaded = False
        self._generation = 0
        self._closed = False

    @property
    def notifier(self):
        return self.service.notifier

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    @property
    def filtered(self) -> list[LoanApplicationRecord]:
        items = self.applications
        if self.status_filter and self.status_filter != "all":
            items = [a for a in items if a.status == self.status_filter]
        term = self.search_term.strip().lower()
        if term:
            items = [a for a in items if term in a.customer_name.lower() or term in a.application_id.lower()]
        return items

    def get(self, application_id: str) -> Optional[LoanApplicationRecord]:
        return next((a for a in self.applications if a.application_id == application_id), None)

    def actions_for(self, application_id: str) -> list[ApplicationStatus]:
        app = self.get(application_id)
        return available_actions(app.status) if app else []

    async def load(self) -> bool:
        """Fetch every application. False when the result was stale and discarded."""
        self._generation += 1
        generation = self._generation
        items = await self.service.search_loan_applications("")
        if self._closed or generation != self._generation:
            logger.debug("Discarding stale board load")
            return False
        self.applications = items
        self.is_loaded = True
        return True

    async def approve(self, application_id: str) -> bool:
        return await self._transition(application_id, ApplicationStatus.APPROVED.value)

    async def reject(self, application_id: str, reason: str) -> bool:
        return await self._transition(application_id, ApplicationStatus.REJECTED.value, rejection_reason=reason)

    async def request_evidence(self, application_id: str, description: str) -> bool:
        return await self._transition(
            application_id, ApplicationStatus.EVIDENCE_REQUIRED.value, evidence_required=description
        )

    def _replace(self, record: LoanApplicationRecord) -> None:
        self.applications = [record if a.application_id == record.application_id else a for a in self.applications]

    async def _transition(
        self,
        application_id: str,
        status: str,
        rejection_reason: Optional[str] = None,
        evidence_required: Optional[str] = None,
    ) -> bool:
        previous = self.get(application_id)
        if previous is None:
            self.notifier.error("Application not found")
            return False
        try:
            change = self.service.workflow.plan(previous.status, status, rejection_reason, evidence_required)
        except LoanDeskError as e:
            self.notifier.error("Failed to update application status", e.message)
            return False

        self._replace(previous.model_copy(update=change.as_fields()))
        try:
            updated = await self.service.update_application_status(
                application_id, status, rejection_reason=rejection_reason, evidence_required=evidence_required
            )
        except BackendError as e:
            # the service has already raised the notice
            logger.warning(f"Rolling back {application_id} to {previous.status}: {e.message}")
            updated = None
        except LoanDeskError as e:
            logger.warning(f"Rolling back {application_id} to {previous.status}: {e.message}")
            self.notifier.error("Failed to update application status", e.message)
            updated = None
        if self._closed:
            return bool(updated)
        if not updated:
            self._replace(previous)
            if updated is False:
                self.notifier.error("Application not found")
            return False
        await self.load()
        return True
