from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field
from pydantic.alias_generators import to_camel

_CAMEL = {"populate_by_name": True, "alias_generator": to_camel, "from_attributes": True}


class AuthUser(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    created_at: Optional[datetime] = None
    last_sign_in_at: Optional[datetime] = None

    model_config = _CAMEL


class AuthCredentials(AuthUser):
    """Stored auth user including the bcrypt hash. Never leaves the auth service."""

    password_hash: str


class AuthSession(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: AuthUser

    model_config = _CAMEL


class Identity(BaseModel):
    """The authenticated caller, as seen by the data access layer."""

    user_id: str
    email: Optional[str] = None
    is_admin: bool = False


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    full_name: str = Field(..., alias="fullName")

    model_config = {"populate_by_name": True}
