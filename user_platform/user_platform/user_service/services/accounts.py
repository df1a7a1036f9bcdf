"""
Account lifecycle: signup preconditions, login gating and password changes.
"""
from datetime import date
from typing import Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import crud
from ..auth import hasher, token_issuer
from ..config import settings
from ..exceptions import AccountAlreadyExists, AccountDisabled, UnderRequiredAge, WrongPassword
from ..models import Account, Role
from ..notifications import send_verification_email, send_welcome_email
from ..schemas import RegisterRequest
from .verification import attach_code

logger = logging.getLogger(__name__)


def age_in_years(birthday: date, today: Optional[date] = None) -> int:
    """Whole years elapsed; a birthday falling today counts as completed."""
    today = today or date.today()
    years = today.year - birthday.year
    if (today.month, today.day) < (birthday.month, birthday.day):
        years -= 1
    return years


def validate_is_adult(birthday: date, today: Optional[date] = None) -> None:
    if age_in_years(birthday, today) < settings.MINIMUM_AGE:
        raise UnderRequiredAge(f"User must be at least {settings.MINIMUM_AGE} years old.")


def validate_for_signup(db: Session, email: str, birthday: date, today: Optional[date] = None) -> None:
    if crud.exists_by_email(db, email):
        raise AccountAlreadyExists("A user with this email already exists.")
    validate_is_adult(birthday, today)


def gate_login(account: Account, password: str) -> None:
    # Password first so the enabled flag is only revealed to the owner
    if not hasher.verify_password(password, account.password):
        raise WrongPassword("Wrong password!")
    if not account.enabled:
        raise AccountDisabled("Account Disabled!")


def signup(db: Session, payload: RegisterRequest, notifier) -> Account:
    validate_for_signup(db, payload.email, payload.birthday)

    account = Account(
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        phone_number=payload.phone_number,
        birthday=payload.birthday,
        password=hasher.hash_password(payload.password),
        enabled=False,
        roles=[payload.role.value] if payload.role else [Role.TENANT.value],
        score=100
    )
    attach_code(account)
    db.add(account)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent signup for the same e-mail
        db.rollback()
        raise AccountAlreadyExists("A user with this email already exists.") from exc
    db.refresh(account)
    logger.info("Account registered: user_id=%s roles=%s", account.id, account.roles)

    send_welcome_email(notifier, account)
    send_verification_email(notifier, account)
    return account


def login(db: Session, email: str, password: str) -> tuple[Account, str]:
    account = crud.find_by_email(db, email)
    gate_login(account, password)
    token = token_issuer.issue(account.id, account.roles)
    logger.info("Credential issued: user_id=%s", account.id)
    return account, token


def change_password(db: Session, account_id: int, current_password: str, new_password: str) -> Account:
    account = crud.find_by_id(db, account_id)
    if not hasher.verify_password(current_password, account.password):
        raise WrongPassword("Current password is incorrect!")

    account.password = hasher.hash_password(new_password)
    db.add(account)
    db.commit()
    db.refresh(account)
    logger.info("Password changed from profile: user_id=%s", account.id)
    return account
