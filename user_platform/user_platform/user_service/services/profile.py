"""
Identity-relevant profile data: public and admin views, wallet linkage,
roles and the enabled flag.

Wallet and host-role changes are announced to the profile-change sink after
commit.
"""
import logging
import re

from sqlalchemy.orm import Session

from .. import crud
from ..models import Account, Role
from ..schemas import UpdateAccountRequest
from .accounts import validate_is_adult

logger = logging.getLogger(__name__)

WALLET_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")


def _normalize_wallet(value):
    if value is None:
        return None
    value = value.strip()
    return value or None


def get_public_profile(db: Session, account_id: int) -> Account:
    return crud.find_by_id(db, account_id)


def get_stats(db: Session, account_id: int) -> dict:
    account = crud.find_by_id(db, account_id)
    return {
        "id": account.id,
        "rating": account.rating,
        "score": account.score,
        "created_at": account.created_at,
        "is_verified": account.enabled,
    }


def list_for_admin(db: Session) -> list[dict]:
    accounts = db.query(Account).order_by(Account.id).all()
    return [
        {
            "id": account.id,
            "first_name": account.first_name,
            "last_name": account.last_name,
            "email": account.email,
            "profile_picture": account.profile_picture,
            "birthday": account.birthday,
            "phone_number": account.phone_number,
            "wallet_address": _normalize_wallet(account.wallet_address),
            "roles": sorted(account.roles or []),
            "enabled": account.enabled,
            "score": account.score if account.score is not None else 100,
            "rating": account.rating,
        }
        for account in accounts
    ]


def update_account(db: Session, account_id: int, payload: UpdateAccountRequest, profile_events) -> Account:
    account = crud.find_by_id(db, account_id)
    wallet_changed = False

    if payload.first_name and payload.first_name.strip():
        account.first_name = payload.first_name
    if payload.last_name and payload.last_name.strip():
        account.last_name = payload.last_name

    if payload.wallet_address is not None:
        new_wallet = _normalize_wallet(payload.wallet_address)
        if new_wallet is not None and not WALLET_PATTERN.match(new_wallet):
            raise ValueError(
                "Wallet address must be a valid Ethereum address (0x followed by 40 hex characters)"
            )
        if new_wallet != _normalize_wallet(account.wallet_address):
            account.wallet_address = new_wallet
            wallet_changed = True

    if payload.birthday is not None:
        validate_is_adult(payload.birthday)
        account.birthday = payload.birthday

    db.add(account)
    db.commit()
    db.refresh(account)

    if wallet_changed:
        profile_events.send(account.id, account.wallet_address is not None)
    return account


def _set_roles(db: Session, account: Account, roles: set) -> Account:
    if not roles:
        roles = {Role.TENANT.value}
    account.roles = sorted(roles)
    db.add(account)
    db.commit()
    db.refresh(account)
    logger.info("Roles updated: user_id=%s roles=%s", account.id, account.roles)
    return account


def add_host_role(db: Session, account_id: int, profile_events) -> Account:
    # Becoming a host replaces the tenant role
    account = crud.find_by_id(db, account_id)
    roles = set(account.roles or [])
    roles.discard(Role.TENANT.value)
    roles.add(Role.HOST.value)
    account = _set_roles(db, account, roles)
    profile_events.send(account.id, False)
    return account


def remove_host_role(db: Session, account_id: int) -> Account:
    account = crud.find_by_id(db, account_id)
    return _set_roles(db, account, set(account.roles or []) - {Role.HOST.value})


def add_admin_role(db: Session, account_id: int) -> Account:
    account = crud.find_by_id(db, account_id)
    return _set_roles(db, account, set(account.roles or []) | {Role.ADMIN.value})


def remove_admin_role(db: Session, account_id: int) -> Account:
    account = crud.find_by_id(db, account_id)
    return _set_roles(db, account, set(account.roles or []) - {Role.ADMIN.value})


def set_enabled(db: Session, account_id: int, enabled: bool) -> Account:
    account = crud.find_by_id(db, account_id)
    account.enabled = enabled
    db.add(account)
    db.commit()
    db.refresh(account)
    logger.info("Account %s: user_id=%s", "enabled" if enabled else "disabled", account.id)
    return account
