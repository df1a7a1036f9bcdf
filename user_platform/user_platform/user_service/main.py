"""
User Service - account registration, verification, login and password reset
"""
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime
import logging

from .config import settings
from .db import init_db
from .exceptions import UserServiceError
from .notifications import start_dispatchers, stop_dispatchers
from .routes import auth, users
from .utils.event_logger import configure_logging

configure_logging(settings)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Initialize database and dispatchers on startup, drain dispatchers on shutdown"""
    init_db()
    start_dispatchers(settings)
    yield
    stop_dispatchers()


app = FastAPI(
    title="User Service",
    description="Account registration, verification, login and password reset",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router)
app.include_router(users.router)


def error_body(status_code: int, error: str, message, request: Request) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "timestamp": datetime.utcnow().isoformat(),
            "status": status_code,
            "error": error,
            "message": message,
            "path": request.url.path,
        },
    )


@app.exception_handler(UserServiceError)
async def user_service_error_handler(request: Request, exc: UserServiceError):
    return error_body(exc.status_code, exc.title, exc.message, request)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"] if part != "body")
        errors[field or "body"] = error["msg"]
    return error_body(status.HTTP_400_BAD_REQUEST, "Validation Failed", errors, request)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return error_body(status.HTTP_400_BAD_REQUEST, "Invalid Argument", str(exc), request)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s: %s", request.url.path, exc, exc_info=True)
    return error_body(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal Server Error",
        "An unexpected error occurred. Please try again later.",
        request,
    )


@app.get("/health", status_code=status.HTTP_200_OK)
def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat()
    }
