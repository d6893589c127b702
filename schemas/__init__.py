from schemas.application import (
    ApplicationCreate,
    ApplicationPage,
    LoanApplicationRecord,
    StatusUpdate,
)
from schemas.auth import (
    AuthCredentials,
    AuthSession,
    AuthUser,
    Identity,
    SignInRequest,
    SignUpRequest,
)
from schemas.payment import PaymentCreate, PaymentRecord
from schemas.profile import ProfileRecord

__all__ = [
    "ApplicationCreate",
    "ApplicationPage",
    "LoanApplicationRecord",
    "StatusUpdate",
    "AuthCredentials",
    "AuthSession",
    "AuthUser",
    "Identity",
    "SignInRequest",
    "SignUpRequest",
    "PaymentCreate",
    "PaymentRecord",
    "ProfileRecord",
]
