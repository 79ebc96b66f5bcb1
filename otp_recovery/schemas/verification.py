import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.networks import validate_email

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")


class VerificationType(str, Enum):
    reset_password = "reset-password"


class VerificationRecord(BaseModel):
    """Pending challenge as seen by the verification lifecycle"""
    model_config = ConfigDict(frozen=True)

    kind: VerificationType = Field(..., description="Verification purpose")
    target: str = Field(..., description="Email or username being verified")
    otp: str = Field(..., description="Issued code")
    secret: str = Field(..., repr=False, description="HMAC key")
    algorithm: str = Field(default="SHA1", description="HMAC hash function")
    valid_seconds: int = Field(default=30, description="TOTP step length")
    expires_at: Optional[datetime] = Field(None, description="Hard expiry")
    created_at: Optional[datetime] = Field(None, description="Creation time")


class VerifiedIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: str
    username: str


class HandoffSession(BaseModel):
    token: str = Field(..., description="Signed session token")
    expires_at: datetime = Field(..., description="Token expiry")


class ForgotPasswordVerifyRequest(BaseModel):
    target: str = Field(..., description="Email address or username")
    code: str = Field(..., min_length=6, max_length=6,
                      pattern=r"^[0-9]{6}$", description="6-digit code")

    @field_validator("target")
    @classmethod
    def email_or_username(cls, value: str) -> str:
        if 3 <= len(value) <= 20 and USERNAME_PATTERN.match(value):
            return value
        if not 3 <= len(value) <= 100:
            raise ValueError("Must be a valid email address or username")
        validate_email(value)
        # keep the raw value; records are keyed by what the user entered
        return value


class VerifySubmission(BaseModel):
    status: str = Field(..., description="idle, error or success")
    payload: Dict[str, Any] = Field(default_factory=dict)
    errors: Dict[str, Any] = Field(default_factory=dict)


class VerifySuccess(BaseModel):
    status: str = Field(default="success")
    redirect_to: str = Field(..., alias="redirectTo")

    model_config = ConfigDict(populate_by_name=True)
