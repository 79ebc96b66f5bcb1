from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session
from otp_recovery.models.verification import Verification
from otp_recovery.schemas.verification import (VerificationRecord,
                                               VerificationType)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VerificationStore(ABC):
    """Persistence for pending verification challenges.

    The store is the only authority for consumption: ``consume`` must remove
    the matching records in one atomic step and report how many it removed,
    so that of two concurrent callers only the first sees a non-zero count.
    """

    @abstractmethod
    def find_active(self, kind: VerificationType, target: str, code: str) -> Optional[VerificationRecord]:
        """Unexpired record for the exact (kind, target, code) triple"""

    @abstractmethod
    def consume(self, kind: VerificationType, target: str, code: str) -> int:
        """Delete the matching records; returns the number removed"""

    @abstractmethod
    def create(self, record: VerificationRecord) -> VerificationRecord:
        """Persist a new pending record"""

    @abstractmethod
    def revoke(self, kind: VerificationType, target: str) -> int:
        """Delete every record for (kind, target)"""

    @abstractmethod
    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Delete records past their expiry"""

    @abstractmethod
    def count(self, kind: VerificationType, target: str) -> int:
        """Number of pending records for (kind, target)"""


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _aware_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlVerificationStore(VerificationStore):
    """Verification records in the relational database"""

    def __init__(self, db: Session):
        self.db = db

    def _matching(self, kind: VerificationType, target: str):
        return self.db.query(Verification).filter(
            Verification.type == kind.value,
            Verification.target == target,
        )

    def find_active(self, kind: VerificationType, target: str, code: str) -> Optional[VerificationRecord]:
        now = _naive_utc(utcnow())
        row = self._matching(kind, target).filter(
            Verification.otp == code,
            or_(Verification.expires_at.is_(None),
                Verification.expires_at > now),
        ).order_by(Verification.created_at.desc()).first()
        if row is None:
            return None
        return VerificationRecord(
            kind=VerificationType(row.type),
            target=row.target,
            otp=row.otp,
            secret=row.secret_key,
            algorithm=row.algorithm,
            valid_seconds=row.valid_seconds,
            expires_at=_aware_utc(row.expires_at),
            created_at=_aware_utc(row.created_at),
        )

    def consume(self, kind: VerificationType, target: str, code: str) -> int:
        # a single DELETE; the database decides which concurrent caller wins
        removed = self._matching(kind, target).filter(
            Verification.otp == code
        ).delete(synchronize_session=False)
        self.db.commit()
        return removed

    def create(self, record: VerificationRecord) -> VerificationRecord:
        row = Verification(
            type=record.kind.value,
            target=record.target,
            otp=record.otp,
            secret_key=record.secret,
            algorithm=record.algorithm,
            valid_seconds=record.valid_seconds,
            expires_at=_naive_utc(record.expires_at),
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return record.model_copy(update={"created_at": _aware_utc(row.created_at)})

    def revoke(self, kind: VerificationType, target: str) -> int:
        removed = self._matching(kind, target).delete(
            synchronize_session=False)
        self.db.commit()
        return removed

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        cutoff = _naive_utc(now or utcnow())
        removed = self.db.query(Verification).filter(
            Verification.expires_at.isnot(None),
            Verification.expires_at <= cutoff,
        ).delete(synchronize_session=False)
        self.db.commit()
        return removed

    def count(self, kind: VerificationType, target: str) -> int:
        return self._matching(kind, target).count()
