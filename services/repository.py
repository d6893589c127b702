"""
Storage adapters behind one interface: SqlRepository talks to the hosted
relational backend, LocalRepository wraps the fallback LocalStore. Both map
rows into the canonical records from schemas/ and raise BackendError on any
storage failure.
"""
from __future__ import annotations

import abc
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from database import create_sessionmaker
from models import AuthUserRow, LoanApplication, Payment, Profile
from schemas.application import LoanApplicationRecord
from schemas.auth import AuthCredentials
from schemas.payment import PaymentRecord
from schemas.profile import ProfileRecord
from services.errors import BackendError
from services.local_store import LocalStore
from services.workflow import ApplicationStatus, StatusChange

logger = logging.getLogger(__name__)

SORT_COLUMNS = ("created_at", "loan_amount")


class LoanRepository(abc.ABC):
    mode: str = "unknown"

    @abc.abstractmethod
    async def list_applications(self, owner_id: Optional[str] = None) -> list[LoanApplicationRecord]:
        """Applications newest first, optionally only those owned by owner_id."""

    @abc.abstractmethod
    async def get_application(self, application_id: str) -> Optional[LoanApplicationRecord]:
        ...

    @abc.abstractmethod
    async def find_applications_by_customer_name(self, name: str) -> list[LoanApplicationRecord]:
        """Case-insensitive exact match on customer_name."""

    @abc.abstractmethod
    async def search_applications(self, term: str) -> list[LoanApplicationRecord]:
        """Case-insensitive substring match on customer_name OR application_id, newest first."""

    @abc.abstractmethod
    async def page_applications(
        self,
        offset: int,
        limit: int,
        status: Optional[str] = None,
        sort_by: str = "created_at",
        descending: bool = True,
    ) -> tuple[list[LoanApplicationRecord], int]:
        """One slice of applications plus the total row count for the filter."""

    @abc.abstractmethod
    async def list_application_ids(self, owner_id: str) -> list[str]:
        ...

    @abc.abstractmethod
    async def insert_application(
        self,
        *,
        application_id: str,
        customer_id: Optional[str],
        customer_name: str,
        loan_amount: float,
        loan_type: Optional[str] = None,
    ) -> LoanApplicationRecord:
        ...

    @abc.abstractmethod
    async def update_application_status(self, application_id: str, change: StatusChange) -> bool:
        """Write one status change. False when no row has that business key."""

    @abc.abstractmethod
    async def list_payments(
        self, owner_id: Optional[str] = None, application_id: Optional[str] = None
    ) -> list[PaymentRecord]:
        ...

    @abc.abstractmethod
    async def insert_payment(
        self, *, payment_id: str, application_id: str, amount: float, customer_id: Optional[str]
    ) -> PaymentRecord:
        ...

    @abc.abstractmethod
    async def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        ...

    @abc.abstractmethod
    async def save_profile(self, profile: ProfileRecord) -> ProfileRecord:
        ...

    @abc.abstractmethod
    async def get_auth_user(self, email: str) -> Optional[AuthCredentials]:
        ...

    @abc.abstractmethod
    async def save_auth_user(self, user: AuthCredentials) -> AuthCredentials:
        ...

    async def close(self) -> None:
        return None


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SqlRepository(LoanRepository):
    mode = "remote"

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self._sessionmaker = create_sessionmaker(engine)

    async def _scalars(self, stmt) -> list:
        try:
            async with self._sessionmaker() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Backend query failed: {e}")
            raise BackendError("The loan backend could not complete the request") from e

    async def _scalar_one_or_none(self, stmt):
        rows = await self._scalars(stmt)
        return rows[0] if rows else None

    async def _add(self, row):
        try:
            async with self._sessionmaker() as session:
                session.add(row)
                await session.commit()
                await session.refresh(row)
                return row
        except SQLAlchemyError as e:
            logger.error(f"Backend insert into {row.__tablename__} failed: {e}")
            raise BackendError(f"The loan backend rejected the new {row.__tablename__} row") from e

    async def list_applications(self, owner_id: Optional[str] = None) -> list[LoanApplicationRecord]:
        stmt = select(LoanApplication).order_by(LoanApplication.created_at.desc())
        if owner_id is not None:
            stmt = stmt.where(LoanApplication.customer_id == owner_id)
        return [LoanApplicationRecord.model_validate(r) for r in await self._scalars(stmt)]

    async def get_application(self, application_id: str) -> Optional[LoanApplicationRecord]:
        row = await self._scalar_one_or_none(
            select(LoanApplication).where(LoanApplication.application_id == application_id)
        )
        return LoanApplicationRecord.model_validate(row) if row else None

    async def find_applications_by_customer_name(self, name: str) -> list[LoanApplicationRecord]:
        stmt = (
            select(LoanApplication)
            .where(func.lower(LoanApplication.customer_name) == name.lower())
            .order_by(LoanApplication.created_at.desc())
        )
        return [LoanApplicationRecord.model_validate(r) for r in await self._scalars(stmt)]

    async def search_applications(self, term: str) -> list[LoanApplicationRecord]:
        pattern = _like_pattern(term)
        stmt = (
            select(LoanApplication)
            .where(
                or_(
                    LoanApplication.customer_name.ilike(pattern, escape="\\"),
                    LoanApplication.application_id.ilike(pattern, escape="\\"),
                )
            )
            .order_by(LoanApplication.created_at.desc())
        )
        return [LoanApplicationRecord.model_validate(r) for r in await self._scalars(stmt)]

    async def page_applications(
        self,
        offset: int,
        limit: int,
        status: Optional[str] = None,
        sort_by: str = "created_at",
        descending: bool = True,
    ) -> tuple[list[LoanApplicationRecord], int]:
        column = getattr(LoanApplication, sort_by)
        stmt = select(LoanApplication)
        count_stmt = select(func.count()).select_from(LoanApplication)
        if status:
            stmt = stmt.where(LoanApplication.status == status)
            count_stmt = count_stmt.where(LoanApplication.status == status)
        stmt = stmt.order_by(column.desc() if descending else column.asc(), LoanApplication.id).offset(offset).limit(limit)
        rows = await self._scalars(stmt)
        total = await self._scalar_one_or_none(count_stmt)
        return [LoanApplicationRecord.model_validate(r) for r in rows], int(total or 0)

    async def list_application_ids(self, owner_id: str) -> list[str]:
        stmt = (
            select(LoanApplication.application_id)
            .where(LoanApplication.customer_id == owner_id)
            .order_by(LoanApplication.created_at.desc())
        )
        return await self._scalars(stmt)

    async def insert_application(
        self,
        *,
        application_id: str,
        customer_id: Optional[str],
        customer_name: str,
        loan_amount: float,
        loan_type: Optional[str] = None,
    ) -> LoanApplicationRecord:
        now = datetime.now(timezone.utc)
        row = LoanApplication(
            id=uuid.uuid4().hex,
            application_id=application_id,
            customer_id=customer_id,
            customer_name=customer_name,
            loan_amount=loan_amount,
            status=ApplicationStatus.PENDING.value,
            loan_type=loan_type,
            created_at=now,
            updated_at=now,
        )
        return LoanApplicationRecord.model_validate(await self._add(row))

    async def update_application_status(self, application_id: str, change: StatusChange) -> bool:
        stmt = (
            update(LoanApplication)
            .where(LoanApplication.application_id == application_id)
            .values(**change.as_fields(), updated_at=datetime.now(timezone.utc))
        )
        try:
            async with self._sessionmaker() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Backend status update for {application_id} failed: {e}")
            raise BackendError("The loan backend could not update the application status") from e
        return result.rowcount > 0

    async def list_payments(
        self, owner_id: Optional[str] = None, application_id: Optional[str] = None
    ) -> list[PaymentRecord]:
        stmt = select(Payment).order_by(Payment.created_at.desc())
        if owner_id is not None:
            stmt = stmt.where(Payment.customer_id == owner_id)
        if application_id is not None:
            stmt = stmt.where(Payment.application_id == application_id)
        return [PaymentRecord.model_validate(r) for r in await self._scalars(stmt)]

    async def insert_payment(
        self, *, payment_id: str, application_id: str, amount: float, customer_id: Optional[str]
    ) -> PaymentRecord:
        row = Payment(
            id=uuid.uuid4().hex,
            payment_id=payment_id,
            application_id=application_id,
            amount=amount,
            customer_id=customer_id,
            created_at=datetime.now(timezone.utc),
        )
        return PaymentRecord.model_validate(await self._add(row))

    async def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        row = await self._scalar_one_or_none(select(Profile).where(Profile.id == user_id))
        return ProfileRecord.model_validate(row) if row else None

    async def save_profile(self, profile: ProfileRecord) -> ProfileRecord:
        try:
            async with self._sessionmaker() as session:
                row = await session.get(Profile, profile.id)
                if row is None:
                    row = Profile(id=profile.id)
                    session.add(row)
                row.email = profile.email
                row.full_name = profile.full_name
                row.role = profile.role
                await session.commit()
                await session.refresh(row)
                return ProfileRecord.model_validate(row)
        except SQLAlchemyError as e:
            logger.error(f"Backend profile save for {profile.id} failed: {e}")
            raise BackendError("The loan backend could not save the profile") from e

    async def get_auth_user(self, email: str) -> Optional[AuthCredentials]:
        row = await self._scalar_one_or_none(
            select(AuthUserRow).where(func.lower(AuthUserRow.email) == email.lower())
        )
        return AuthCredentials.model_validate(row) if row else None

    async def save_auth_user(self, user: AuthCredentials) -> AuthCredentials:
        try:
            async with self._sessionmaker() as session:
                row = await session.get(AuthUserRow, user.id)
                if row is None:
                    row = AuthUserRow(id=user.id, created_at=user.created_at or datetime.now(timezone.utc))
                    session.add(row)
                row.email = user.email
                row.password_hash = user.password_hash
                row.full_name = user.full_name
                row.last_sign_in_at = user.last_sign_in_at
                await session.commit()
                await session.refresh(row)
                return AuthCredentials.model_validate(row)
        except SQLAlchemyError as e:
            logger.error(f"Backend auth user save failed: {e}")
            raise BackendError("The auth backend could not save the account") from e

    async def close(self) -> None:
        await self.engine.dispose()


def _newest_first(records):
    return sorted(records, key=lambda r: r.created_at, reverse=True)


class LocalRepository(LoanRepository):
    """Async facade over LocalStore; the store itself is synchronous."""

    mode = "local"

    def __init__(self, store: LocalStore):
        self.store = store

    async def list_applications(self, owner_id: Optional[str] = None) -> list[LoanApplicationRecord]:
        apps = self.store.list_applications()
        if owner_id is not None:
            apps = [a for a in apps if a.customer_id == owner_id]
        return _newest_first(apps)

    async def get_application(self, application_id: str) -> Optional[LoanApplicationRecord]:
        return self.store.find_by_id(application_id)

    async def find_applications_by_customer_name(self, name: str) -> list[LoanApplicationRecord]:
        return _newest_first(self.store.find_by_customer_name(name))

    async def search_applications(self, term: str) -> list[LoanApplicationRecord]:
        needle = term.lower()
        return _newest_first(
            a
            for a in self.store.list_applications()
            if needle in a.customer_name.lower() or needle in a.application_id.lower()
        )

    async def page_applications(
        self,
        offset: int,
        limit: int,
        status: Optional[str] = None,
        sort_by: str = "created_at",
        descending: bool = True,
    ) -> tuple[list[LoanApplicationRecord], int]:
        apps = self.store.list_applications()
        if status:
            apps = [a for a in apps if a.status == status]
        apps = sorted(apps, key=lambda a: getattr(a, sort_by), reverse=descending)
        return apps[offset:offset + limit], len(apps)

    async def list_application_ids(self, owner_id: str) -> list[str]:
        return [a.application_id for a in await self.list_applications(owner_id)]

    async def insert_application(
        self,
        *,
        application_id: str,
        customer_id: Optional[str],
        customer_name: str,
        loan_amount: float,
        loan_type: Optional[str] = None,
    ) -> LoanApplicationRecord:
        return self.store.create_application(
            customer_name,
            loan_amount,
            customer_id=customer_id,
            loan_type=loan_type,
            application_id=application_id,
        )

    async def update_application_status(self, application_id: str, change: StatusChange) -> bool:
        return self.store.apply_status_change(application_id, change)

    async def list_payments(
        self, owner_id: Optional[str] = None, application_id: Optional[str] = None
    ) -> list[PaymentRecord]:
        payments = self.store.list_payments()
        if owner_id is not None:
            payments = [p for p in payments if p.customer_id == owner_id]
        if application_id is not None:
            payments = [p for p in payments if p.application_id == application_id]
        return _newest_first(payments)

    async def insert_payment(
        self, *, payment_id: str, application_id: str, amount: float, customer_id: Optional[str]
    ) -> PaymentRecord:
        return self.store.create_payment(application_id, amount, customer_id=customer_id, payment_id=payment_id)

    async def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        return self.store.get_profile(user_id)

    async def save_profile(self, profile: ProfileRecord) -> ProfileRecord:
        now = datetime.now(timezone.utc)
        profile = profile.model_copy(update={"created_at": profile.created_at or now, "updated_at": now})
        return self.store.save_profile(profile)

    async def get_auth_user(self, email: str) -> Optional[AuthCredentials]:
        return self.store.get_auth_user(email)

    async def save_auth_user(self, user: AuthCredentials) -> AuthCredentials:
        if user.created_at is None:
            user = user.model_copy(update={"created_at": datetime.now(timezone.utc)})
        return self.store.save_auth_user(user)
