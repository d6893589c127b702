from models.application import LoanApplication
from models.auth_user import AuthUserRow
from models.payment import Payment
from models.profile import Profile

__all__ = [
    "AuthUserRow",
    "LoanApplication",
    "Payment",
    "Profile",
]
