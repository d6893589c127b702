from typing import Optional

from fastapi import APIRouter, Depends

from api.deps import get_backend, get_identity, get_token
from schemas.auth import AuthSession, Identity, SignInRequest, SignUpRequest
from services.backend import Backend

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _session_to_response(session: AuthSession, is_admin: bool = False) -> dict:
    return {
        "accessToken": session.access_token,
        "tokenType": session.token_type,
        "expiresAt": session.expires_at.isoformat(),
        "user": session.user.model_dump(by_alias=True, mode="json"),
        "isAdmin": is_admin,
    }


@router.post("/sign-up", status_code=201)
async def sign_up(body: SignUpRequest, backend: Backend = Depends(get_backend)):
    session = await backend.auth.sign_up(body.email, body.password, body.full_name)
    return _session_to_response(session)


@router.post("/sign-in")
async def sign_in(body: SignInRequest, backend: Backend = Depends(get_backend)):
    session = await backend.auth.sign_in(body.email, body.password)
    profile = await backend.repository.get_profile(session.user.id)
    return _session_to_response(session, is_admin=bool(profile and profile.is_admin))


@router.post("/sign-out", status_code=204)
async def sign_out(token: Optional[str] = Depends(get_token), backend: Backend = Depends(get_backend)):
    await backend.auth.sign_out(token)
    return None


@router.get("/session")
async def current_session(identity: Optional[Identity] = Depends(get_identity)):
    if identity is None:
        return {"user": None, "isAdmin": False}
    return {"user": {"id": identity.user_id, "email": identity.email}, "isAdmin": identity.is_admin}
