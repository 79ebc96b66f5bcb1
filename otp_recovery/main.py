import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from otp_recovery.api.v1.router import api_router
from otp_recovery.config import settings
from otp_recovery.core.database import init_database
from otp_recovery.core.exceptions import AppException
from otp_recovery.core.redis import RedisClient
from otp_recovery.schemas.base import ErrorResponse
from otp_recovery.utils.logger import app_logger


def _error_response(status_code: int, message: str, code: str, errors=None) -> JSONResponse:
    body = ErrorResponse(message=message, code=code, errors=errors or {})
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown"""
        app_logger.info("Application starting up...")

        try:
            init_database()
            app_logger.info("Database initialized successfully")
        except Exception as e:
            app_logger.error(f"Database initialization failed: {e}")

        if settings.verification_backend == "redis":
            try:
                RedisClient.get_instance().ping()
                app_logger.info("Redis connection successful")
            except Exception as e:
                app_logger.error(f"Redis connection failed: {e}")

        app_logger.info(
            f"Application started: {settings.app_name} v{settings.app_version}")

        yield

        app_logger.info("Application shutting down...")
        RedisClient.close()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Password recovery one-time code verification API",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    # cookies carry the handoff session, so credentials must be allowed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(process_time)

        return response

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        if exc.status_code >= 500:
            # diagnostic detail stays in the server log
            app_logger.error(
                f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
            return _error_response(exc.status_code, "Internal server error", "INTERNAL_ERROR")
        return _error_response(
            exc.status_code, exc.message, exc.code, getattr(exc, "errors", None))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = {}
        for error in exc.errors():
            loc = error.get("loc") or ()
            field = str(loc[-1]) if loc else "__root__"
            errors.setdefault(field, []).append(error.get("msg", "Invalid value"))
        return _error_response(422, "Validation failed", "VALIDATION_ERROR", errors)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        app_logger.exception(
            f"Unhandled error on {request.method} {request.url.path}")
        return _error_response(500, "Internal server error", "INTERNAL_ERROR")

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()
