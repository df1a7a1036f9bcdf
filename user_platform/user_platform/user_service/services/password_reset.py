"""
Password reset tokens.

A reset request stores only the SHA-256 digest of a 6-digit secret that is
e-mailed to the account owner. The secret can be redeemed on its own (link
flow) or together with the owner's e-mail (code flow). Every validation and
every redemption re-reads the stored row and runs the full check sequence:

1. no row for the digest            -> TokenNotFound
2. row owned by another account     -> InvalidToken (code flow only)
3. expired                          -> ExpiredToken
4. invalidated                      -> InvalidToken
5. already used                     -> UsedToken

Redeeming a secret sets ``used`` on its row and invalidates every other
unused, still-valid row of the same account in the same transaction.

A digest is unique among live rows only. Spent or expired digests may be
issued again, and lookups resolve a digest to its newest row.
"""
from datetime import datetime, timedelta
from typing import Optional
import logging

from sqlalchemy.orm import Session

from .. import crud
from ..auth import hasher
from ..config import settings
from ..exceptions import ExpiredToken, InvalidToken, TokenNotFound, UsedToken
from ..models import Account, PasswordResetToken
from ..notifications import send_password_reset_email
from .verification import generate_code

logger = logging.getLogger(__name__)

# A fresh secret colliding with a live token is retried this many times
MAX_SECRET_ATTEMPTS = 10


def _new_secret(db: Session) -> tuple[str, str]:
    now = datetime.utcnow()
    for _ in range(MAX_SECRET_ATTEMPTS):
        secret = generate_code()
        digest = hasher.hash_token(secret)
        if not crud.live_reset_token_digest_exists(db, digest, now):
            return secret, digest
    raise RuntimeError("Could not allocate a unique password reset secret")


def request_reset(db: Session, email: str, notifier) -> PasswordResetToken:
    account = crud.find_by_email(db, email)
    secret, digest = _new_secret(db)

    token = PasswordResetToken(
        token_hash=digest,
        account_id=account.id,
        used=False,
        valid=True,
        expires_at=datetime.utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
    )
    db.add(token)
    db.commit()
    db.refresh(token)

    # Best effort: the token exists whether or not the e-mail goes out
    send_password_reset_email(notifier, account, secret, token.expires_at)
    logger.info("Password reset requested: user_id=%s token_id=%s", account.id, token.id)
    return token


def _check(token: Optional[PasswordResetToken], owner: Optional[Account] = None, label: str = "Token") -> PasswordResetToken:
    if token is None:
        raise TokenNotFound(f"{label} not found!")

    if owner is not None and token.account_id != owner.id:
        raise InvalidToken(f"Invalid {label.lower()} for this email!")

    if token.expires_at < datetime.utcnow():
        raise ExpiredToken(f"{label} expired!")

    if not token.valid:
        raise InvalidToken(f"Invalid {label.lower()}!")

    if token.used:
        raise UsedToken(f"{label} already used!")

    return token


def validate_reset_token(db: Session, raw_token: str) -> PasswordResetToken:
    token = crud.get_reset_token_by_digest(db, hasher.hash_token(raw_token))
    return _check(token)


def validate_reset_code(db: Session, email: str, raw_code: str) -> PasswordResetToken:
    account = crud.find_by_email(db, email)
    token = crud.get_reset_token_by_digest(db, hasher.hash_token(raw_code))
    return _check(token, owner=account, label="Reset code")


def _consume(db: Session, token: PasswordResetToken, new_password: str) -> Account:
    account = token.account
    account.password = hasher.hash_password(new_password)
    token.used = True
    db.add(account)
    db.add(token)

    invalidated = crud.invalidate_unused_tokens(db, account.id, exclude_id=token.id)
    db.commit()
    db.refresh(account)

    logger.info(
        "Password reset completed: user_id=%s token_id=%s invalidated_tokens=%s",
        account.id, token.id, invalidated
    )
    return account


def reset_password_with_token(db: Session, raw_token: str, new_password: str) -> Account:
    token = crud.get_reset_token_by_digest(db, hasher.hash_token(raw_token), for_update=True)
    _check(token)
    return _consume(db, token, new_password)


def reset_password_with_code(db: Session, email: str, raw_code: str, new_password: str) -> Account:
    account = crud.find_by_email(db, email)
    token = crud.get_reset_token_by_digest(db, hasher.hash_token(raw_code), for_update=True)
    _check(token, owner=account, label="Reset code")
    return _consume(db, token, new_password)
