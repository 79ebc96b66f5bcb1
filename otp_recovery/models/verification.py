import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, Integer, String
from otp_recovery.core.database import Base


class Verification(Base):
    """Pending one-time-code challenge"""
    __tablename__ = "verifications"
    __table_args__ = (
        Index("ix_verifications_type_target", "type", "target"),
    )

    id = Column(String(36), primary_key=True,
                default=lambda: str(uuid.uuid4()))
    type = Column(String(50), nullable=False)  # reset-password
    target = Column(String(255), nullable=False)  # email or username
    otp = Column(String(12), nullable=False)
    secret_key = Column(String(255), nullable=False)
    algorithm = Column(String(16), nullable=False, default="SHA1")
    valid_seconds = Column(Integer, nullable=False, default=30)
    # naive UTC, like the rest of the schema
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(
        timezone.utc).replace(tzinfo=None))
