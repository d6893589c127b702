"""
Backend auth subsystem: password accounts, signed session tokens and
auth-state-change notifications.
"""
from __future__ import annotations

import inspect
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Optional, Union

import bcrypt
from jose import JWTError, jwt

from schemas.auth import AuthCredentials, AuthSession, AuthUser
from schemas.profile import ProfileRecord
from services.errors import AuthError
from services.repository import LoanRepository

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

# bcrypt only looks at the first 72 bytes and newer releases refuse longer input
MAX_PASSWORD_BYTES = 72

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

AuthListener = Callable[[str, Optional[AuthSession]], Union[None, Awaitable[None]]]


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError as e:
        logger.error(f"Bcrypt verify failed: {e}")
        return False


class AuthService:
    def __init__(
        self,
        repository: LoanRepository,
        secret_key: str,
        session_ttl: timedelta = timedelta(minutes=60),
        bcrypt_rounds: int = 12,
    ):
        self.repository = repository
        self._secret_key = secret_key
        self.session_ttl = session_ttl
        self.bcrypt_rounds = bcrypt_rounds
        self._revoked: dict[str, float] = {}
        self._listeners: list[AuthListener] = []

    # -- subscriptions ------------------------------------------------------

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        """Register a listener; returns the matching unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _emit(self, event: str, session: Optional[AuthSession]) -> None:
        for listener in list(self._listeners):
            result = listener(event, session)
            if inspect.isawaitable(result):
                await result

    # -- tokens -------------------------------------------------------------

    def _issue(self, user: AuthUser) -> AuthSession:
        expires_at = datetime.now(timezone.utc) + self.session_ttl
        claims = {
            "sub": user.id,
            "email": user.email,
            "jti": uuid.uuid4().hex,
            "exp": expires_at,
        }
        token = jwt.encode(claims, self._secret_key, algorithm=ALGORITHM)
        return AuthSession(access_token=token, expires_at=expires_at, user=user)

    def _decode(self, token: str) -> Optional[dict[str, Any]]:
        try:
            claims = jwt.decode(token, self._secret_key, algorithms=[ALGORITHM])
        except JWTError:
            return None
        if claims.get("jti") in self._revoked:
            return None
        return claims

    def _revoke(self, claims: dict[str, Any]) -> None:
        now = datetime.now(timezone.utc).timestamp()
        self._revoked = {jti: exp for jti, exp in self._revoked.items() if exp > now}
        self._revoked[claims["jti"]] = claims["exp"]

    async def _ensure_profile(self, user: AuthUser) -> None:
        if await self.repository.get_profile(user.id) is None:
            logger.info(f"Creating missing profile for {user.id}")
            await self.repository.save_profile(ProfileRecord(id=user.id, email=user.email, full_name=user.full_name))

    # -- account operations -------------------------------------------------

    async def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> AuthSession:
        email = email.strip().lower()
        if not email or not password:
            raise AuthError("Email and password are required", status_code=422)
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise AuthError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes", status_code=422)
        if await self.repository.get_auth_user(email) is not None:
            raise AuthError("An account with this email already exists", status_code=409)
        credentials = AuthCredentials(
            id=uuid.uuid4().hex,
            email=email,
            full_name=full_name,
            password_hash=hash_password(password, self.bcrypt_rounds),
            created_at=datetime.now(timezone.utc),
            last_sign_in_at=datetime.now(timezone.utc),
        )
        saved = await self.repository.save_auth_user(credentials)
        logger.info(f"Account created: {saved.id}")
        user = AuthUser.model_validate(saved.model_dump(exclude={"password_hash"}))
        # sign_in recreates the profile if this write fails
        await self._ensure_profile(user)
        session = self._issue(user)
        await self._emit(SIGNED_IN, session)
        return session

    async def sign_in(self, email: str, password: str) -> AuthSession:
        credentials = await self.repository.get_auth_user(email.strip().lower())
        if credentials is None or not verify_password(password, credentials.password_hash):
            raise AuthError("Invalid login credentials")
        credentials = credentials.model_copy(update={"last_sign_in_at": datetime.now(timezone.utc)})
        await self.repository.save_auth_user(credentials)
        user = AuthUser.model_validate(credentials.model_dump(exclude={"password_hash"}))
        await self._ensure_profile(user)
        session = self._issue(user)
        logger.info(f"User signed in: {credentials.id}")
        await self._emit(SIGNED_IN, session)
        return session

    async def sign_out(self, token: Optional[str]) -> None:
        """Revoke the token. Listeners get the ended session, or None for an unknown token."""
        session = await self.get_session(token)
        claims = self._decode(token) if token else None
        if claims is not None:
            self._revoke(claims)
            logger.info(f"User signed out: {claims['sub']}")
        await self._emit(SIGNED_OUT, session)

    async def get_session(self, token: Optional[str]) -> Optional[AuthSession]:
        """The live session for a token, or None when missing, expired or revoked."""
        if not token:
            return None
        claims = self._decode(token)
        if claims is None:
            return None
        credentials = await self.repository.get_auth_user(claims["email"])
        if credentials is None or credentials.id != claims["sub"]:
            return None
        return AuthSession(
            access_token=token,
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
            user=AuthUser.model_validate(credentials.model_dump(exclude={"password_hash"})),
        )

    async def get_user(self, token: Optional[str]) -> Optional[AuthUser]:
        session = await self.get_session(token)
        return session.user if session else None
