"""
Local persistence store used in fallback mode, when no hosted backend is configured.

A small key-value store: one key per collection, each holding the full list of
camelCase records. With a path the keys live in a JSON file; without one they
live in memory for the life of the process. Every write re-serializes the
whole collection, so the store assumes a single writer.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from schemas.application import LoanApplicationRecord
from schemas.auth import AuthCredentials
from schemas.payment import PaymentRecord
from schemas.profile import ProfileRecord
from services.errors import BackendError
from services.workflow import ApplicationStatus, StatusChange, StatusWorkflow
from utils.identifiers import APPLICATION_PREFIX, PAYMENT_PREFIX, generate_id

logger = logging.getLogger(__name__)

APPLICATIONS_KEY = "loanApplications"
PAYMENTS_KEY = "payments"
PROFILES_KEY = "profiles"
AUTH_USERS_KEY = "authUsers"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _dump(record: Any) -> dict[str, Any]:
    return record.model_dump(by_alias=True, mode="json")


class LocalStore:
    def __init__(self, path: Optional[Union[str, Path]] = None, workflow: Optional[StatusWorkflow] = None):
        self.path = Path(path) if path else None
        self.workflow = workflow or StatusWorkflow()
        self._memory: dict[str, list[dict[str, Any]]] = {}
        self._lock = threading.Lock()

    # -- raw key access ---------------------------------------------------

    def _load_all(self) -> dict[str, list[dict[str, Any]]]:
        if self.path is None:
            return self._memory
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Local store at {self.path} is unreadable: {e}")
            raise BackendError(f"Local store is unreadable: {e}") from e
        if not isinstance(data, dict):
            raise BackendError("Local store is corrupt: expected an object of collections")
        return data

    def _read(self, key: str) -> list[dict[str, Any]]:
        return list(self._load_all().get(key, []))

    def _write(self, key: str, items: list[dict[str, Any]]) -> None:
        with self._lock:
            if self.path is None:
                self._memory[key] = items
                return
            data = dict(self._load_all())
            data[key] = items
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(data, fh)
                os.replace(tmp_path, self.path)
            except OSError as e:
                Path(tmp_path).unlink(missing_ok=True)
                logger.error(f"Failed to write local store {self.path}: {e}")
                raise BackendError(f"Local store is not writable: {e}") from e

    def _remove(self, key: str) -> None:
        if self.path is None:
            self._memory.pop(key, None)
            return
        data = self._load_all()
        if key in data:
            self._write(key, [])

    # -- applications -----------------------------------------------------

    def list_applications(self) -> list[LoanApplicationRecord]:
        return [LoanApplicationRecord.model_validate(item) for item in self._read(APPLICATIONS_KEY)]

    def create_application(
        self,
        customer_name: str,
        loan_amount: float,
        customer_id: Optional[str] = None,
        loan_type: Optional[str] = None,
        application_id: Optional[str] = None,
    ) -> LoanApplicationRecord:
        now = _now()
        record = LoanApplicationRecord(
            id=uuid.uuid4().hex,
            application_id=application_id or generate_id(APPLICATION_PREFIX),
            customer_id=customer_id,
            customer_name=customer_name,
            loan_amount=loan_amount,
            status=ApplicationStatus.PENDING.value,
            loan_type=loan_type,
            created_at=now,
            updated_at=now,
        )
        items = self._read(APPLICATIONS_KEY)
        items.append(_dump(record))
        self._write(APPLICATIONS_KEY, items)
        return record

    def find_by_customer_name(self, name: str) -> list[LoanApplicationRecord]:
        wanted = name.lower()
        return [app for app in self.list_applications() if app.customer_name.lower() == wanted]

    def find_by_id(self, application_id: str) -> Optional[LoanApplicationRecord]:
        return next((app for app in self.list_applications() if app.application_id == application_id), None)

    def update_status(
        self,
        application_id: str,
        new_status: str,
        rejection_reason: Optional[str] = None,
        evidence_required: Optional[str] = None,
    ) -> bool:
        current = self.find_by_id(application_id)
        if current is None:
            return False
        change = self.workflow.plan(current.status, new_status, rejection_reason, evidence_required)
        return self.apply_status_change(application_id, change)

    def apply_status_change(self, application_id: str, change: StatusChange) -> bool:
        items = self._read(APPLICATIONS_KEY)
        index = next((i for i, item in enumerate(items) if item.get("applicationId") == application_id), None)
        if index is None:
            return False
        items[index] = {
            **items[index],
            "status": change.status.value,
            "rejectionReason": change.rejection_reason,
            "evidenceRequired": change.evidence_required,
            "updatedAt": _now().isoformat(),
        }
        self._write(APPLICATIONS_KEY, items)
        return True

    def list_application_ids(self) -> list[str]:
        return [app.application_id for app in self.list_applications()]

    # -- payments ---------------------------------------------------------

    def list_payments(self) -> list[PaymentRecord]:
        return [PaymentRecord.model_validate(item) for item in self._read(PAYMENTS_KEY)]

    def create_payment(
        self,
        application_id: str,
        amount: float,
        customer_id: Optional[str] = None,
        payment_id: Optional[str] = None,
    ) -> PaymentRecord:
        record = PaymentRecord(
            id=uuid.uuid4().hex,
            payment_id=payment_id or generate_id(PAYMENT_PREFIX),
            application_id=application_id,
            amount=amount,
            customer_id=customer_id,
            created_at=_now(),
        )
        items = self._read(PAYMENTS_KEY)
        items.append(_dump(record))
        self._write(PAYMENTS_KEY, items)
        return record

    def find_payments_by_application(self, application_id: str) -> list[PaymentRecord]:
        return [p for p in self.list_payments() if p.application_id == application_id]

    # -- profiles and auth users (fallback-mode auth) -----------------------

    def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        item = next((p for p in self._read(PROFILES_KEY) if p.get("id") == user_id), None)
        return ProfileRecord.model_validate(item) if item else None

    def save_profile(self, profile: ProfileRecord) -> ProfileRecord:
        items = [p for p in self._read(PROFILES_KEY) if p.get("id") != profile.id]
        items.append(_dump(profile))
        self._write(PROFILES_KEY, items)
        return profile

    def get_auth_user(self, email: str) -> Optional[AuthCredentials]:
        wanted = email.lower()
        item = next((u for u in self._read(AUTH_USERS_KEY) if u.get("email", "").lower() == wanted), None)
        return AuthCredentials.model_validate(item) if item else None

    def save_auth_user(self, user: AuthCredentials) -> AuthCredentials:
        items = [u for u in self._read(AUTH_USERS_KEY) if u.get("id") != user.id]
        items.append(_dump(user))
        self._write(AUTH_USERS_KEY, items)
        return user

    def clear_all(self) -> None:
        """Wipe applications and payments. Accounts and profiles are kept."""
        self._remove(APPLICATIONS_KEY)
        self._remove(PAYMENTS_KEY)
