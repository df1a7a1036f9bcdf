"""
Shared fixtures for user_service tests.

Settings are read once at import time, so the test environment is set up
before the service modules are imported.
"""
import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_user_service.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-user-service-tests")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "1000")
os.environ.setdefault("NOTIFICATION_TRANSPORT", "log")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "user_service_test_logs"))

from datetime import date

import pytest
from fastapi.testclient import TestClient

from user_platform.user_platform.user_service.main import app
from user_platform.user_platform.user_service.db import Base, engine, SessionLocal
from user_platform.user_platform.user_service.models import Account
from user_platform.user_platform.user_service.auth import hasher
from user_platform.user_platform.user_service.notifications import get_notifier, get_profile_events


class RecordingNotifier:
    """Stands in for the notification dispatcher and keeps every message."""

    def __init__(self):
        self.sent = []

    def send(self, kind, account_id, payload):
        self.sent.append((kind, account_id, payload))

    def last(self, kind):
        matching = [payload for sent_kind, _, payload in self.sent if sent_kind == kind]
        return matching[-1] if matching else None


class RecordingProfileEvents:
    def __init__(self):
        self.sent = []

    def send(self, account_id, complete):
        self.sent.append((account_id, complete))


@pytest.fixture(autouse=True)
def reset_database():
    # Drop all tables and recreate them before each test
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def profile_events():
    return RecordingProfileEvents()


@pytest.fixture
def client(notifier, profile_events):
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_profile_events] = lambda: profile_events
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_account(db_session):
    """Insert an account directly, bypassing signup."""

    def _make(email="user@example.com", password="Secret123!", enabled=True, roles=None,
              birthday=date(1990, 1, 1)):
        account = Account(
            first_name="A",
            last_name="B",
            email=email,
            password=hasher.hash_password(password),
            birthday=birthday,
            phone_number="0612345678",
            enabled=enabled,
            roles=roles or ["TENANT"],
        )
        db_session.add(account)
        db_session.commit()
        db_session.refresh(account)
        return account

    return _make
