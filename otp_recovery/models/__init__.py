# import every model so it is registered with SQLAlchemy
from otp_recovery.models.user import User
from otp_recovery.models.verification import Verification

__all__ = [
    "User",
    "Verification",
]
