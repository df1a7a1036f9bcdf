"""
Account verification codes.

An account holds at most one code at a time; attaching a new one replaces the
old. A code is checked against its absolute expiry first, then for an exact
match, and is cleared once it verifies the account.
"""
from datetime import datetime, timedelta
import logging
import secrets

from sqlalchemy.orm import Session

from ..config import settings
from ..exceptions import AlreadyVerified, ExpiredVerificationCode, WrongVerificationCode
from ..models import Account
from ..notifications import send_verification_email
from ..crud import find_by_email

logger = logging.getLogger(__name__)

CODE_MIN = 100000
CODE_MAX = 999999


def generate_code() -> str:
    """Return a uniformly random 6-digit code from a CSPRNG."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


def attach_code(account: Account, ttl_minutes: int = None) -> str:
    if ttl_minutes is None:
        ttl_minutes = settings.VERIFICATION_CODE_EXPIRE_MINUTES
    account.verification_code = generate_code()
    account.verification_code_expires_at = datetime.utcnow() + timedelta(minutes=ttl_minutes)
    return account.verification_code


def check_code(account: Account, supplied_code: str) -> None:
    """
    Verify ``supplied_code`` against the account's active code.

    On success the code is cleared and the account enabled; the caller
    commits.

    Raises:
        AlreadyVerified: account enabled and holding no code
        ExpiredVerificationCode: no active code, or now >= expiry
        WrongVerificationCode: code differs
    """
    if account.verification_code is None or account.verification_code_expires_at is None:
        if account.enabled:
            raise AlreadyVerified("User is already verified")
        raise ExpiredVerificationCode("Expired verification code!")

    if datetime.utcnow() >= account.verification_code_expires_at:
        raise ExpiredVerificationCode("Expired verification code!")

    if account.verification_code != supplied_code:
        raise WrongVerificationCode("Wrong verification code!")

    account.enabled = True
    account.verification_code = None
    account.verification_code_expires_at = None


def verify_account(db: Session, email: str, code: str) -> Account:
    account = find_by_email(db, email)
    check_code(account, code)
    db.add(account)
    db.commit()
    db.refresh(account)
    logger.info("Account verified: user_id=%s", account.id)
    return account


def resend_code(db: Session, email: str, notifier) -> Account:
    account = find_by_email(db, email)
    if account.enabled:
        raise AlreadyVerified("User is already verified")

    attach_code(account)
    db.add(account)
    db.commit()
    db.refresh(account)

    send_verification_email(notifier, account)
    logger.info("Verification code reissued: user_id=%s", account.id)
    return account
