from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from otp_recovery.config import settings
from otp_recovery.schemas.verification import HandoffSession, VerifiedIdentity

RESET_PASSWORD_USERNAME_KEY = "resetPasswordUsername"


class SessionHandoff:
    """Signs the short-lived session that carries a verified username forward"""

    def __init__(
        self,
        secret_key: str = settings.secret_key,
        algorithm: str = settings.algorithm,
        expire_minutes: int = settings.handoff_session_expire_minutes,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(self, identity: VerifiedIdentity) -> HandoffSession:
        """Create a fresh session holding only the verified username"""
        expire = datetime.now(timezone.utc) + \
            timedelta(minutes=self.expire_minutes)
        to_encode = {
            RESET_PASSWORD_USERNAME_KEY: identity.username,
            "exp": expire,
        }
        token = jwt.encode(to_encode, self.secret_key,
                           algorithm=self.algorithm)
        return HandoffSession(token=token, expires_at=expire)

    def read(self, token: str) -> Optional[str]:
        """Username carried by a valid, unexpired handoff token"""
        try:
            payload = jwt.decode(token, self.secret_key,
                                 algorithms=[self.algorithm])
        except JWTError:
            return None
        return payload.get(RESET_PASSWORD_USERNAME_KEY)
