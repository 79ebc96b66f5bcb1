from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session
from otp_recovery.models.user import User


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def find_by_email_or_username(self, value: str) -> Optional[User]:
        """User whose email or username equals ``value``"""
        return self.db.query(User).filter(
            or_(User.email == value, User.username == value)
        ).first()
