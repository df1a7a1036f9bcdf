from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from . import crud
from .auth import token_issuer
from .db import get_db
from .exceptions import InvalidCredential, PermissionDenied
from .models import Account, Role


def get_credential(
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> tuple[int, dict]:
    """Verified (account_id, claims) of the bearer credential."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise InvalidCredential("Not authenticated")
    return token_issuer.verify(authorization.split(" ", 1)[1].strip())


def is_admin(claims: dict) -> bool:
    return Role.ADMIN.value in (claims.get("roles") or [])


def get_current_account(
    db: Session = Depends(get_db),
    credential: tuple[int, dict] = Depends(get_credential),
) -> Account:
    account_id, _claims = credential
    return crud.find_by_id(db, account_id)


def require_admin(credential: tuple[int, dict] = Depends(get_credential)) -> int:
    """Authorise from the credential's role claim alone, without a store lookup."""
    account_id, claims = credential
    if not is_admin(claims):
        raise PermissionDenied("Admin role required")
    return account_id
