from datetime import timedelta
from typing import Optional

from otp_recovery.config import settings
from otp_recovery.core.exceptions import (ConfigurationError, InvalidCodeError,
                                          InvariantViolationError)
from otp_recovery.core.totp import (generate_secret, generate_totp,
                                    resolve_algorithm, verify_totp)
from otp_recovery.schemas.verification import (VerificationRecord,
                                               VerificationType,
                                               VerifiedIdentity)
from otp_recovery.services.user_service import UserService
from otp_recovery.services.verification_store import VerificationStore, utcnow
from otp_recovery.utils.logger import verification_logger


class RecoveryVerificationService:
    """Password-recovery verification: issue a challenge, then prove it once.

    ``verify`` is terminal in one call. It either returns the identity that
    owns the target or raises; there is no intermediate state a caller can
    resume.
    """

    kind = VerificationType.reset_password

    def __init__(
        self,
        store: VerificationStore,
        user_service: UserService,
        window: int = settings.verification_window,
    ):
        self.store = store
        self.user_service = user_service
        self.window = window

    def prepare(
        self,
        target: str,
        valid_seconds: int = settings.verification_valid_seconds,
        algorithm: str = settings.verification_algorithm,
        expires_in: Optional[timedelta] = None,
    ) -> str:
        """Issue a new code for ``target``, replacing any pending one.

        The caller owns delivery of the returned code.
        """
        hash_algorithm = resolve_algorithm(algorithm)
        if expires_in is None:
            expires_in = timedelta(minutes=settings.verification_expire_minutes)

        replaced = self.store.revoke(self.kind, target)
        if replaced:
            verification_logger.info(
                f"Replaced {replaced} pending verification(s) for {target}")

        secret = generate_secret()
        now = utcnow()
        code = generate_totp(secret, hash_algorithm, valid_seconds,
                             for_time=now.timestamp())
        self.store.create(VerificationRecord(
            kind=self.kind,
            target=target,
            otp=code,
            secret=secret,
            algorithm=hash_algorithm.value,
            valid_seconds=valid_seconds,
            expires_at=now + expires_in,
            created_at=now,
        ))
        return code

    def verify(self, target: str, code: str) -> VerifiedIdentity:
        """Check ``code`` for ``target`` and consume the challenge.

        Raises:
            InvalidCodeError: no pending record, wrong code, or another
                attempt consumed the record first
            ConfigurationError: the stored record is malformed
            InvariantViolationError: the target has no owning user
        """
        record = self.store.find_active(self.kind, target, code)
        if record is None:
            verification_logger.warning(
                f"Rejected recovery code for {target}: no pending verification")
            raise InvalidCodeError()

        try:
            valid = verify_totp(
                code,
                record.secret,
                record.algorithm,
                record.valid_seconds,
                self.window,
            )
        except ConfigurationError as e:
            verification_logger.error(
                f"Malformed verification record for {target}: {e.message}")
            raise

        if not valid:
            verification_logger.warning(
                f"Rejected recovery code for {target}: TOTP check failed")
            raise InvalidCodeError()

        removed = self.store.consume(self.kind, target, code)
        if removed == 0:
            verification_logger.warning(
                f"Rejected recovery code for {target}: already consumed")
            raise InvalidCodeError()

        user = self.user_service.find_by_email_or_username(target)
        if user is None:
            verification_logger.critical(
                f"Verified target {target} has no matching user")
            raise InvariantViolationError("User not found")

        verification_logger.info(f"Recovery verified for {user.username}")
        return VerifiedIdentity(email=user.email, username=user.username)
