from typing import Optional

from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from schemas.auth import Identity
from services.backend import Backend
from services.errors import AuthRequiredError, PermissionDeniedError
from services.loan_service import LoanDataService
from services.notifications import Notifier

NOTICE_HEADER = "X-Loan-Desk-Notice"

_bearer = HTTPBearer(auto_error=False)


def get_backend(request: Request) -> Backend:
    return request.app.state.backend


def get_notifier() -> Notifier:
    return Notifier()


def get_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer)) -> Optional[str]:
    return credentials.credentials if credentials else None


async def get_identity(
    token: Optional[str] = Depends(get_token),
    backend: Backend = Depends(get_backend),
) -> Optional[Identity]:
    """Resolve the caller from the bearer token; admin comes from the profile role."""
    session = await backend.auth.get_session(token)
    if session is None:
        return None
    profile = await backend.repository.get_profile(session.user.id)
    return Identity(
        user_id=session.user.id,
        email=session.user.email,
        is_admin=bool(profile and profile.is_admin),
    )


def require_identity(identity: Optional[Identity] = Depends(get_identity)) -> Identity:
    if identity is None:
        raise AuthRequiredError()
    return identity


def require_admin(identity: Identity = Depends(require_identity)) -> Identity:
    if not identity.is_admin:
        raise PermissionDeniedError("Administrator access required")
    return identity


def get_loan_service(
    backend: Backend = Depends(get_backend),
    identity: Optional[Identity] = Depends(get_identity),
    notifier: Notifier = Depends(get_notifier),
) -> LoanDataService:
    return LoanDataService(backend.repository, identity=identity, notifier=notifier, workflow=backend.workflow)


def attach_notices(response: Response, service: LoanDataService) -> None:
    """Expose errors swallowed by read operations so clients can tell failure from no data."""
    errors = [n.message for n in service.notifier.errors]
    if errors:
        response.headers[NOTICE_HEADER] = "; ".join(errors)
