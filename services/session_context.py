"""
Process-wide auth state for a client of the loan desk.

Created once at start-up, kept current by auth-state-change events for its
own user and torn down with close(). The admin flag is looked up from the
caller's profile on every session change; token claims are never trusted for it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from schemas.auth import AuthSession, AuthUser, Identity
from services.auth import SIGNED_OUT, AuthService
from services.errors import BackendError, LoanDeskError
from services.notifications import Notifier
from services.repository import LoanRepository

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    data: Optional[Any] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AuthContext:
    def __init__(self, auth: AuthService, repository: LoanRepository, notifier: Optional[Notifier] = None):
        self.auth = auth
        self.repository = repository
        self.notifier = notifier or Notifier()
        self.user: Optional[AuthUser] = None
        self.session: Optional[AuthSession] = None
        self.is_loading = True
        self.is_admin = False
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def identity(self) -> Optional[Identity]:
        if self.user is None:
            return None
        return Identity(user_id=self.user.id, email=self.user.email, is_admin=self.is_admin)

    async def start(self, access_token: Optional[str] = None) -> None:
        """Resolve the initial session and subscribe to auth changes."""
        if self._unsubscribe is None:
            self._unsubscribe = self.auth.on_auth_state_change(self._on_auth_change)
        try:
            await self._apply_session(await self.auth.get_session(access_token))
        except BackendError as e:
            logger.error(f"Initial session check failed: {e}")
            self.notifier.error("Could not restore your session")
            await self._apply_session(None)
        finally:
            self.is_loading = False

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def _on_auth_change(self, event: str, session: Optional[AuthSession]) -> None:
        # Events from other users' sign-ins and sign-outs are ignored
        event_user = session.user.id if session else None
        if event == SIGNED_OUT:
            if self.user is None or event_user != self.user.id:
                return
            await self._apply_session(None)
        else:
            if session is None or (self.user is not None and event_user != self.user.id):
                return
            await self._apply_session(session)
        self.is_loading = False

    async def _apply_session(self, session: Optional[AuthSession]) -> None:
        self.session = session
        self.user = session.user if session else None
        self.is_admin = await self._lookup_admin(self.user)

    async def _lookup_admin(self, user: Optional[AuthUser]) -> bool:
        if user is None:
            return False
        try:
            profile = await self.repository.get_profile(user.id)
        except BackendError as e:
            logger.error(f"Role lookup for {user.id} failed: {e}")
            return False
        return bool(profile and profile.is_admin)

    async def sign_in(self, email: str, password: str) -> AuthResult:
        try:
            session = await self.auth.sign_in(email, password)
            await self._apply_session(session)
        except LoanDeskError as e:
            self.notifier.error("Sign in failed", e.message)
            return AuthResult(error=e.message)
        finally:
            self.is_loading = False
        return AuthResult(data=session)

    async def sign_up(self, email: str, password: str, full_name: str) -> AuthResult:
        try:
            session = await self.auth.sign_up(email, password, full_name)
            await self._apply_session(session)
        except LoanDeskError as e:
            self.notifier.error("Sign up failed", e.message)
            return AuthResult(error=e.message)
        finally:
            self.is_loading = False
        return AuthResult(data=session)

    async def sign_out(self) -> AuthResult:
        token = self.session.access_token if self.session else None
        try:
            await self.auth.sign_out(token)
        except LoanDeskError as e:
            self.notifier.error("Sign out failed", e.message)
            return AuthResult(error=e.message)
        finally:
            self.is_loading = False
        await self._apply_session(None)
        return AuthResult()
