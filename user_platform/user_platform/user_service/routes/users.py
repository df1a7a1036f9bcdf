"""
Profile endpoints: the authenticated account, public reads and admin role management.
"""
from typing import List

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ..db import get_db
from ..dependencies import get_credential, get_current_account, is_admin, require_admin
from ..exceptions import PermissionDenied
from ..models import Account
from ..notifications import get_profile_events
from ..schemas import (
    AccountResponse,
    AccountStatsResponse,
    AdminAccountResponse,
    ChangePasswordRequest,
    MessageResponse,
    PublicProfileResponse,
    UpdateAccountRequest,
)
from ..services import accounts, profile
from ..utils.event_logger import log_auth_event

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("/me", response_model=AccountResponse)
def get_me(account: Account = Depends(get_current_account)):
    return account


@router.put("/me", response_model=AccountResponse)
def update_me(
    payload: UpdateAccountRequest,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    profile_events=Depends(get_profile_events),
):
    return profile.update_account(db, account.id, payload, profile_events)


@router.post("/me/change-password", response_model=MessageResponse)
def change_password(
    payload: ChangePasswordRequest,
    request: Request,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    account = accounts.change_password(db, account.id, payload.current_password, payload.new_password)
    log_auth_event("password_change", account, request, db)
    return MessageResponse(message="Password changed successfully")


@router.post("/me/become-host", status_code=status.HTTP_204_NO_CONTENT)
def become_host(
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    profile_events=Depends(get_profile_events),
):
    profile.add_host_role(db, account.id, profile_events)


# ---------------- Admin ----------------

@router.get("/admin/all", response_model=List[AdminAccountResponse])
def list_accounts(_admin: int = Depends(require_admin), db: Session = Depends(get_db)):
    return profile.list_for_admin(db)


@router.post("/admin/{account_id}/enable", status_code=status.HTTP_204_NO_CONTENT)
def enable_account(account_id: int, _admin: int = Depends(require_admin), db: Session = Depends(get_db)):
    profile.set_enabled(db, account_id, True)


@router.post("/admin/{account_id}/disable", status_code=status.HTTP_204_NO_CONTENT)
def disable_account(account_id: int, _admin: int = Depends(require_admin), db: Session = Depends(get_db)):
    profile.set_enabled(db, account_id, False)


@router.post("/admin/{account_id}/add-admin-role", status_code=status.HTTP_204_NO_CONTENT)
def add_admin_role(account_id: int, _admin: int = Depends(require_admin), db: Session = Depends(get_db)):
    profile.add_admin_role(db, account_id)


@router.post("/admin/{account_id}/remove-admin-role", status_code=status.HTTP_204_NO_CONTENT)
def remove_admin_role(account_id: int, _admin: int = Depends(require_admin), db: Session = Depends(get_db)):
    profile.remove_admin_role(db, account_id)


@router.post("/admin/{account_id}/add-host-role", status_code=status.HTTP_204_NO_CONTENT)
def add_host_role(
    account_id: int,
    _admin: int = Depends(require_admin),
    db: Session = Depends(get_db),
    profile_events=Depends(get_profile_events),
):
    profile.add_host_role(db, account_id, profile_events)


@router.post("/admin/{account_id}/remove-host-role", status_code=status.HTTP_204_NO_CONTENT)
def remove_host_role(account_id: int, _admin: int = Depends(require_admin), db: Session = Depends(get_db)):
    profile.remove_host_role(db, account_id)


# ---------------- Public reads ----------------
# Must stay below the literal /me and /admin paths

@router.get("/{account_id}", response_model=PublicProfileResponse)
def get_public_profile(account_id: int, db: Session = Depends(get_db)):
    return profile.get_public_profile(db, account_id)


@router.get("/{account_id}/stats", response_model=AccountStatsResponse)
def get_stats(
    account_id: int,
    credential: tuple[int, dict] = Depends(get_credential),
    db: Session = Depends(get_db),
):
    requester_id, claims = credential
    if requester_id != account_id and not is_admin(claims):
        raise PermissionDenied("Stats are visible to the account owner and admins only")
    return profile.get_stats(db, account_id)
