from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from .exceptions import AccountNotFound
from .models import Account, PasswordResetToken


def get_account_by_email(db: Session, email: str) -> Optional[Account]:
    return db.query(Account).filter(Account.email == email).first()


def find_by_email(db: Session, email: str) -> Account:
    account = get_account_by_email(db, email)
    if account is None:
        raise AccountNotFound(f"User Not Found with email: {email}")
    return account


def find_by_id(db: Session, account_id: int) -> Account:
    account = db.query(Account).filter(Account.id == account_id).first()
    if account is None:
        raise AccountNotFound(f"User not found with id: {account_id}")
    return account


def exists_by_email(db: Session, email: str) -> bool:
    return db.query(Account.id).filter(Account.email == email).first() is not None


def get_reset_token_by_digest(db: Session, digest: str, for_update: bool = False) -> Optional[PasswordResetToken]:
    """Newest row for a digest; a live row is always the newest one."""
    query = (
        db.query(PasswordResetToken)
        .filter(PasswordResetToken.token_hash == digest)
        .order_by(PasswordResetToken.id.desc())
    )
    if for_update:
        # Row lock on backends that support it, no-op on SQLite
        query = query.with_for_update()
    return query.first()


def live_reset_token_digest_exists(db: Session, digest: str, now: datetime) -> bool:
    """True when an unused, still-valid, unexpired token already holds the digest."""
    return db.query(PasswordResetToken.id).filter(
        PasswordResetToken.token_hash == digest,
        PasswordResetToken.used.is_(False),
        PasswordResetToken.valid.is_(True),
        PasswordResetToken.expires_at >= now
    ).first() is not None


def invalidate_unused_tokens(db: Session, account_id: int, exclude_id: Optional[int] = None) -> int:
    """Mark every still-usable reset token of an account invalid; returns the row count."""
    query = db.query(PasswordResetToken).filter(
        PasswordResetToken.account_id == account_id,
        PasswordResetToken.used.is_(False),
        PasswordResetToken.valid.is_(True)
    )
    if exclude_id is not None:
        query = query.filter(PasswordResetToken.id != exclude_id)
    return query.update({PasswordResetToken.valid: False}, synchronize_session="fetch")
