from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    success: bool = Field(default=True, description="Whether the request succeeded")
    message: str = Field(..., description="Response message")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="Response time")
    data: Optional[Any] = Field(None, description="Response data")

    class Config:
        populate_by_name = True


class ErrorResponse(BaseModel):
    success: bool = Field(default=False, description="Whether the request succeeded")
    message: str = Field(..., description="Error message")
    code: str = Field(..., description="Error code")
    errors: Dict[str, List[str]] = Field(
        default_factory=dict, description="Messages per input field")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="Error time")
