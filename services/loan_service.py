"""
Data access layer for loan applications and payments.

LoanDataService is built per caller with the repository for the configured
backend and the caller's Identity (None when signed out). It re-checks every
form rule, scopes reads to the caller, runs status changes through the
workflow and verifies payment ownership before inserting.

Read operations degrade to an empty result plus an error notice when the
backend fails; write operations notify and re-raise.
"""
from __future__ import annotations

import logging
import math
from typing import Optional

from schemas.application import ApplicationPage, LoanApplicationRecord
from schemas.auth import Identity
from schemas.payment import PaymentRecord
from schemas.profile import ProfileRecord
from services.errors import (
    AuthRequiredError,
    BackendError,
    PermissionDeniedError,
    SubmissionError,
    ValidationError,
)
from services.notifications import Notifier
from services.repository import LoanRepository
from services.workflow import StatusWorkflow, parse_status
from utils.identifiers import APPLICATION_PREFIX, PAYMENT_PREFIX, generate_id
from utils.validators import (
    to_cents,
    validate_application_id,
    validate_loan_amount,
    validate_name,
    validate_payment_amount,
)

logger = logging.getLogger(__name__)

SORT_FIELDS = {"createdAt": "created_at", "loanAmount": "loan_amount"}
SORT_ORDERS = ("asc", "desc")
MAX_PAGE_SIZE = 100

MSG_PAYMENT_NOT_OWNED = "You do not have permission to make payments on this application"


class LoanDataService:
    def __init__(
        self,
        repository: LoanRepository,
        identity: Optional[Identity] = None,
        notifier: Optional[Notifier] = None,
        workflow: Optional[StatusWorkflow] = None,
    ):
        self.repository = repository
        self.identity = identity
        self.notifier = notifier or Notifier()
        self.workflow = workflow or StatusWorkflow()

    def _require_identity(self) -> Identity:
        if self.identity is None:
            raise AuthRequiredError()
        return self.identity

    def _read_failed(self, message: str, error: BackendError) -> None:
        logger.error(f"{message}: {error}")
        self.notifier.error(message)

    # -- customer operations ----------------------------------------------

    async def get_user_loan_applications(self) -> list[LoanApplicationRecord]:
        identity = self._require_identity()
        try:
            return await self.repository.list_applications(owner_id=identity.user_id)
        except BackendError as e:
            self._read_failed("Failed to load loan applications", e)
            return []

    async def submit_loan_application(
        self, customer_name: str, loan_amount: float, loan_type: Optional[str] = None
    ) -> LoanApplicationRecord:
        identity = self._require_identity()
        loan_amount = to_cents(loan_amount)
        if not validate_name(customer_name):
            raise ValidationError("customerName", "Name must be at least 2 characters")
        if not validate_loan_amount(loan_amount):
            raise ValidationError("loanAmount", "Loan amount must be between $100 and $100,000")
        try:
            record = await self.repository.insert_application(
                application_id=generate_id(APPLICATION_PREFIX),
                customer_id=identity.user_id,
                customer_name=customer_name.strip(),
                loan_amount=float(loan_amount),
                loan_type=(loan_type or "").strip() or None,
            )
        except BackendError as e:
            logger.error(f"Loan application submission for {identity.user_id} failed: {e}")
            self.notifier.error("Failed to submit loan application")
            raise SubmissionError(str(e)) from e
        logger.info(f"Loan application submitted: {record.application_id} for user {identity.user_id}")
        self.notifier.success("Loan application submitted", f"Application ID: {record.application_id}")
        return record

    async def get_application_by_id(self, application_id: str) -> Optional[LoanApplicationRecord]:
        if not validate_application_id(application_id):
            return None
        try:
            return await self.repository.get_application(application_id)
        except BackendError as e:
            # Forms treat a failed lookup the same as a missing one
            logger.error(f"Error fetching application {application_id}: {e}")
            return None

    async def get_application_ids(self) -> list[str]:
        identity = self._require_identity()
        try:
            return await self.repository.list_application_ids(identity.user_id)
        except BackendError as e:
            logger.error(f"Error fetching application IDs: {e}")
            return []

    async def get_payments(self) -> list[PaymentRecord]:
        identity = self._require_identity()
        try:
            return await self.repository.list_payments(owner_id=identity.user_id)
        except BackendError as e:
            self._read_failed("Failed to load payments", e)
            return []

    async def get_payments_for_application(self, application_id: str) -> list[PaymentRecord]:
        identity = self._require_identity()
        try:
            return await self.repository.list_payments(owner_id=identity.user_id, application_id=application_id)
        except BackendError as e:
            self._read_failed("Failed to load payments", e)
            return []

    async def submit_payment(self, application_id: str, amount: float) -> PaymentRecord:
        identity = self._require_identity()
        if not validate_application_id(application_id):
            raise ValidationError("applicationId", "Please select an application")
        # stored at cent precision, so 0.004 becomes 0.00 and is rejected
        amount = to_cents(amount)
        if not validate_payment_amount(amount):
            raise ValidationError("amount", "Payment amount must be greater than 0")

        # Client-side safeguard; the backend policy layer is still authoritative
        try:
            application = await self.repository.get_application(application_id)
        except BackendError as e:
            logger.error(f"Ownership lookup for {application_id} failed: {e}")
            self.notifier.error("Failed to submit payment")
            raise SubmissionError(str(e)) from e
        if application is None or application.customer_id != identity.user_id:
            logger.warning(f"User {identity.user_id} attempted a payment on {application_id}")
            self.notifier.error(MSG_PAYMENT_NOT_OWNED)
            raise PermissionDeniedError(MSG_PAYMENT_NOT_OWNED)

        try:
            payment = await self.repository.insert_payment(
                payment_id=generate_id(PAYMENT_PREFIX),
                application_id=application_id,
                amount=float(amount),
                customer_id=identity.user_id,
            )
        except BackendError as e:
            logger.error(f"Payment insert on {application_id} failed: {e}")
            self.notifier.error("Failed to submit payment")
            raise SubmissionError(str(e)) from e
        logger.info(f"Payment logged: {payment.payment_id} on {application_id}")
        self.notifier.success("Payment logged successfully!", f"Payment ID: {payment.payment_id}")
        return payment

    async def get_user_profile(self) -> Optional[ProfileRecord]:
        if self.identity is None:
            return None
        try:
            return await self.repository.get_profile(self.identity.user_id)
        except BackendError as e:
            logger.error(f"Error fetching user profile: {e}")
            return None

    # -- review operations (admin, gated by the HTTP policy layer) ---------

    async def update_application_status(
        self,
        application_id: str,
        status: str,
        rejection_reason: Optional[str] = None,
        evidence_required: Optional[str] = None,
    ) -> bool:
        parse_status(status)
        try:
            current = await self.repository.get_application(application_id)
        except BackendError:
            self.notifier.error("Failed to update application status")
            raise
        if current is None:
            return False
        change = self.workflow.plan(current.status, status, rejection_reason, evidence_required)
        try:
            updated = await self.repository.update_application_status(application_id, change)
        except BackendError:
            self.notifier.error("Failed to update application status")
            raise
        if updated:
            logger.info(f"Application status updated: {application_id} {current.status} -> {change.status.value}")
            self.notifier.success(f"Application {change.status.value.lower()}")
        return updated

    async def get_all_loan_applications(
        self,
        page: int = 1,
        page_size: int = 10,
        status_filter: Optional[str] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> ApplicationPage:
        if page < 1:
            raise ValidationError("page", "Page numbers start at 1")
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValidationError("pageSize", f"Page size must be between 1 and {MAX_PAGE_SIZE}")
        if sort_by not in SORT_FIELDS:
            raise ValidationError("sortBy", "sortBy must be createdAt or loanAmount")
        if sort_order not in SORT_ORDERS:
            raise ValidationError("sortOrder", "sortOrder must be asc or desc")
        if status_filter in (None, "", "all"):
            status_filter = None
        else:
            parse_status(status_filter)

        try:
            items, total = await self.repository.page_applications(
                offset=(page - 1) * page_size,
                limit=page_size,
                status=status_filter,
                sort_by=SORT_FIELDS[sort_by],
                descending=sort_order == "desc",
            )
        except BackendError as e:
            self._read_failed("Failed to load loan applications", e)
            return ApplicationPage.empty(page, page_size)
        return ApplicationPage(
            items=items,
            total_count=total,
            total_pages=math.ceil(total / page_size),
            page=page,
            page_size=page_size,
        )

    async def search_loan_applications(self, term: str) -> list[LoanApplicationRecord]:
        term = (term or "").strip()
        try:
            if not term:
                return await self.repository.list_applications()
            return await self.repository.search_applications(term)
        except BackendError as e:
            self._read_failed("Failed to search loan applications", e)
            return []

    async def find_applications_by_customer_name(self, name: str) -> list[LoanApplicationRecord]:
        name = (name or "").strip()
        if not name:
            return []
        try:
            return await self.repository.find_applications_by_customer_name(name)
        except BackendError as e:
            self._read_failed("Failed to search loan applications", e)
            return []
