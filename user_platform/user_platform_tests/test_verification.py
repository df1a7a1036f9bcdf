"""
Tests for account verification codes.
"""
from datetime import datetime, timedelta

import pytest

from user_platform.user_platform.user_service.exceptions import (
    AccountNotFound,
    AlreadyVerified,
    ExpiredVerificationCode,
    WrongVerificationCode,
)
from user_platform.user_platform.user_service.models import Account
from user_platform.user_platform.user_service.notifications import NotificationKind
from user_platform.user_platform.user_service.services import verification


def test_generate_code_is_six_digits_in_range():
    for _ in range(500):
        code = verification.generate_code()
        assert len(code) == 6
        assert code.isdigit()
        assert 100000 <= int(code) <= 999999


def test_attach_code_overwrites_previous_code(make_account):
    account = make_account(enabled=False)
    verification.attach_code(account, ttl_minutes=10)
    first_expiry = account.verification_code_expires_at

    verification.attach_code(account, ttl_minutes=30)

    assert account.verification_code_expires_at > first_expiry
    assert account.verification_code_expires_at <= datetime.utcnow() + timedelta(minutes=30)


def test_check_code_success_enables_and_clears(make_account):
    account = make_account(enabled=False)
    code = verification.attach_code(account, ttl_minutes=10)

    verification.check_code(account, code)

    assert account.enabled is True
    assert account.verification_code is None
    assert account.verification_code_expires_at is None


def test_check_code_wrong_code(make_account):
    account = make_account(enabled=False)
    code = verification.attach_code(account, ttl_minutes=10)
    wrong = "100000" if code != "100000" else "100001"

    with pytest.raises(WrongVerificationCode):
        verification.check_code(account, wrong)
    assert account.enabled is False


def test_check_code_expired_is_reported_before_mismatch(make_account):
    account = make_account(enabled=False)
    verification.attach_code(account, ttl_minutes=10)
    account.verification_code_expires_at = datetime.utcnow() - timedelta(seconds=1)

    with pytest.raises(ExpiredVerificationCode):
        verification.check_code(account, "not-the-code")


def test_check_code_without_active_code(make_account):
    enabled = make_account(email="enabled@example.com", enabled=True)
    with pytest.raises(AlreadyVerified):
        verification.check_code(enabled, "123456")

    disabled = make_account(email="disabled@example.com", enabled=False)
    with pytest.raises(ExpiredVerificationCode):
        verification.check_code(disabled, "123456")


def test_resend_code_rejects_verified_account(db_session, make_account, notifier):
    make_account(enabled=True)
    with pytest.raises(AlreadyVerified):
        verification.resend_code(db_session, "user@example.com", notifier)
    assert notifier.sent == []


def test_resend_code_unknown_email(db_session, notifier):
    with pytest.raises(AccountNotFound):
        verification.resend_code(db_session, "nobody@example.com", notifier)


def test_resend_code_issues_fresh_code_and_notifies(db_session, make_account, notifier):
    account = make_account(enabled=False)
    verification.attach_code(account, ttl_minutes=1)
    db_session.commit()
    old_expiry = account.verification_code_expires_at

    verification.resend_code(db_session, "user@example.com", notifier)

    db_session.refresh(account)
    assert account.verification_code_expires_at > old_expiry
    payload = notifier.last(NotificationKind.ACCOUNT_VERIFICATION)
    assert payload["verificationCode"] == account.verification_code
    assert payload["userEmail"] == "user@example.com"


def test_verify_endpoint(client, make_account, db_session):
    account = make_account(enabled=False)
    code = verification.attach_code(account, ttl_minutes=10)
    db_session.commit()

    wrong = client.post("/api/v1/auth/verify", json={"email": "user@example.com", "verification_code": "000000"})
    assert wrong.status_code == 400
    assert wrong.json()["error"] == "Invalid Verification Code"

    ok = client.post("/api/v1/auth/verify", json={"email": "user@example.com", "verification_code": code})
    assert ok.status_code == 200

    db_session.expire_all()
    stored = db_session.query(Account).filter(Account.email == "user@example.com").first()
    assert stored.enabled is True
    assert stored.verification_code is None


def test_resend_endpoint_conflict_when_verified(client, make_account):
    make_account(enabled=True)
    resp = client.post("/api/v1/auth/resend", json={"email": "user@example.com"})
    assert resp.status_code == 409
    assert resp.json()["message"] == "User is already verified"
