from fastapi import APIRouter
from otp_recovery.api.v1.endpoints import auth

api_router = APIRouter()

# password recovery
api_router.include_router(
    auth.router, prefix="/auth", tags=["auth"])
