from fastapi import Depends
from sqlalchemy.orm import Session
from otp_recovery.config import settings
from otp_recovery.core.database import get_db
from otp_recovery.core.exceptions import ConfigurationError
from otp_recovery.core.session import SessionHandoff
from otp_recovery.services.redis_verification_store import \
    RedisVerificationStore
from otp_recovery.services.user_service import UserService
from otp_recovery.services.verification_service import \
    RecoveryVerificationService
from otp_recovery.services.verification_store import (SqlVerificationStore,
                                                      VerificationStore)


def build_verification_store(db: Session, backend: str = None) -> VerificationStore:
    """Store for the configured backend"""
    backend = backend or settings.verification_backend
    if backend == "database":
        return SqlVerificationStore(db)
    if backend == "redis":
        return RedisVerificationStore()
    raise ConfigurationError(f"Unknown verification backend: {backend!r}")


def get_verification_store(db: Session = Depends(get_db)) -> VerificationStore:
    return build_verification_store(db)


def get_recovery_service(
    store: VerificationStore = Depends(get_verification_store),
    db: Session = Depends(get_db)
) -> RecoveryVerificationService:
    return RecoveryVerificationService(store, UserService(db))


def get_session_handoff() -> SessionHandoff:
    return SessionHandoff()
