"""
Authentication endpoints: registration, verification, login and password reset.
"""
import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from .. import crud
from ..auth import token_issuer
from ..db import get_db
from ..exceptions import AccountDisabled, WrongPassword
from ..notifications import get_notifier
from ..schemas import (
    RegisterRequest,
    LoginRequest,
    LoginResponse,
    VerifyRequest,
    EmailRequest,
    MessageResponse,
    ValidResponse,
    ResetTokenRequest,
    ResetPasswordRequest,
    ResetCodeRequest,
    ResetPasswordWithCodeRequest,
)
from ..services import accounts, password_reset, verification
from ..utils.event_logger import log_auth_event

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/register", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, request: Request, db: Session = Depends(get_db), notifier=Depends(get_notifier)):
    account = accounts.signup(db, payload, notifier)
    log_auth_event("signup", account, request, db)
    return MessageResponse(message="User registered successfully")


@router.post("/login", response_model=LoginResponse)
def login(credentials: LoginRequest, request: Request, db: Session = Depends(get_db)):
    try:
        account, token = accounts.login(db, credentials.email, credentials.password)
    except (WrongPassword, AccountDisabled) as exc:
        account = crud.get_account_by_email(db, credentials.email)
        if account:
            log_auth_event("login_failure", account, request, db, {"reason": exc.title})
        raise

    log_auth_event("login_success", account, request, db)
    return LoginResponse(token=token, expires_in=token_issuer.expiration_seconds)


@router.post("/verify", response_model=MessageResponse)
def verify(payload: VerifyRequest, request: Request, db: Session = Depends(get_db)):
    account = verification.verify_account(db, payload.email, payload.verification_code)
    log_auth_event("account_verified", account, request, db)
    return MessageResponse(message="User verified successfully")


@router.post("/resend", response_model=MessageResponse)
def resend(payload: EmailRequest, db: Session = Depends(get_db), notifier=Depends(get_notifier)):
    verification.resend_code(db, payload.email, notifier)
    return MessageResponse(message="Verification Code resent successfully")


# ---------------- Password Reset Flow ----------------

@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(payload: EmailRequest, request: Request, db: Session = Depends(get_db), notifier=Depends(get_notifier)):
    token = password_reset.request_reset(db, payload.email, notifier)
    log_auth_event("password_reset_request", token.account, request, db)
    return MessageResponse(message="Password reset code sent")


@router.post("/verify-reset-token", response_model=ValidResponse)
def verify_reset_token(payload: ResetTokenRequest, db: Session = Depends(get_db)):
    password_reset.validate_reset_token(db, payload.token)
    return ValidResponse(valid=True)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(payload: ResetPasswordRequest, request: Request, db: Session = Depends(get_db)):
    account = password_reset.reset_password_with_token(db, payload.token, payload.password)
    log_auth_event("password_reset", account, request, db, {"method": "token"})
    return MessageResponse(message="Password reset successfully")


@router.post("/verify-reset-code", response_model=ValidResponse)
def verify_reset_code(payload: ResetCodeRequest, db: Session = Depends(get_db)):
    password_reset.validate_reset_code(db, payload.email, payload.code)
    return ValidResponse(valid=True)


@router.post("/reset-password-with-code", response_model=MessageResponse)
def reset_password_with_code(payload: ResetPasswordWithCodeRequest, request: Request, db: Session = Depends(get_db)):
    account = password_reset.reset_password_with_code(db, payload.email, payload.code, payload.new_password)
    log_auth_event("password_reset", account, request, db, {"method": "code"})
    return MessageResponse(message="Password reset successfully")
