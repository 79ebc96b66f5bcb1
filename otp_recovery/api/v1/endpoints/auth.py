from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PydanticValidationError
from otp_recovery.api.dependencies import (get_recovery_service,
                                           get_session_handoff)
from otp_recovery.config import settings
from otp_recovery.core.session import SessionHandoff
from otp_recovery.schemas.base import ApiResponse
from otp_recovery.schemas.verification import (ForgotPasswordVerifyRequest,
                                               VerifySubmission, VerifySuccess)
from otp_recovery.services.verification_service import \
    RecoveryVerificationService
from otp_recovery.utils.logger import api_logger

router = APIRouter()


def _complete_verification(
    request: ForgotPasswordVerifyRequest,
    response: Response,
    service: RecoveryVerificationService,
    handoff: SessionHandoff,
) -> ApiResponse:
    identity = service.verify(request.target, request.code)
    session = handoff.issue(identity)

    max_age = int((session.expires_at - datetime.now(timezone.utc)).total_seconds())
    response.set_cookie(
        settings.session_cookie_name,
        session.token,
        max_age=max(max_age, 0),
        httponly=True,
        samesite="lax",
        secure=not settings.debug,
    )
    api_logger.info(f"Handoff session issued for {identity.username}")
    return ApiResponse(
        success=True,
        message="Verification succeeded",
        timestamp=datetime.now(timezone.utc),
        data=VerifySuccess(redirect_to=settings.reset_password_path).model_dump(
            by_alias=True),
    )


@router.get("/forgot-password/verify", response_model=ApiResponse)
@router.get("/forgot-password/verify/", response_model=ApiResponse)
async def verify_from_link(
    response: Response,
    target: Optional[str] = Query(None, description="Email address or username"),
    code: Optional[str] = Query(None, description="6-digit code"),
    service: RecoveryVerificationService = Depends(get_recovery_service),
    handoff: SessionHandoff = Depends(get_session_handoff),
):
    """Verify a prefilled link; without a code, return an idle submission"""
    if code is None:
        payload = {"target": target} if target is not None else {}
        return ApiResponse(
            success=True,
            message="Awaiting code",
            timestamp=datetime.now(timezone.utc),
            data=VerifySubmission(status="idle", payload=payload).model_dump(),
        )
    try:
        request = ForgotPasswordVerifyRequest(target=target or "", code=code)
    except PydanticValidationError as e:
        raise RequestValidationError(e.errors())
    return _complete_verification(request, response, service, handoff)


@router.post("/forgot-password/verify", response_model=ApiResponse)
@router.post("/forgot-password/verify/", response_model=ApiResponse)
async def verify_submission(
    request: ForgotPasswordVerifyRequest,
    response: Response,
    service: RecoveryVerificationService = Depends(get_recovery_service),
    handoff: SessionHandoff = Depends(get_session_handoff),
):
    """Verify a submitted password-recovery code"""
    return _complete_verification(request, response, service, handoff)
