"""
Unit tests for the fire-and-forget dispatchers and their transports.
"""
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
import logging
import threading
from unittest.mock import Mock, patch

import httpx
import pytest

from user_platform.user_platform.user_service.exceptions import NotificationDispatchFailure
from user_platform.user_platform.user_service.notifications import (
    HttpTransport,
    LoggingTransport,
    NotificationDispatcher,
    NotificationKind,
    ProfileChangeDispatcher,
    send_password_reset_email,
)


class CollectingTransport:
    def __init__(self):
        self.messages = []

    def deliver(self, message):
        self.messages.append(message)


class FailingTransport:
    def __init__(self, error):
        self.error = error

    def deliver(self, message):
        raise self.error


@pytest.fixture
def executor():
    pool = ThreadPoolExecutor(max_workers=1)
    yield pool
    pool.shutdown(wait=True)


def test_notification_envelope(executor):
    transport = CollectingTransport()
    dispatcher = NotificationDispatcher(transport, executor)

    dispatcher.send(NotificationKind.WELCOME, 7, {"userEmail": "a@example.com"})
    executor.shutdown(wait=True)

    message = transport.messages[0]
    assert message["userId"] == "7"
    assert message["channel"] == "WELCOME_EMAIL"
    assert message["message"] == {"userEmail": "a@example.com"}
    assert "createdAt" in message


def test_send_does_not_wait_for_delivery(executor):
    release = threading.Event()
    delivered = []

    class SlowTransport:
        def deliver(self, message):
            release.wait(timeout=5)
            delivered.append(message)

    dispatcher = NotificationDispatcher(SlowTransport(), executor)
    dispatcher.send(NotificationKind.WELCOME, 1, {})

    assert delivered == []
    release.set()
    executor.shutdown(wait=True)
    assert len(delivered) == 1


def test_dispatch_failure_is_logged_and_swallowed(executor, caplog):
    dispatcher = NotificationDispatcher(FailingTransport(NotificationDispatchFailure("queue down")), executor)

    with caplog.at_level(logging.WARNING):
        dispatcher.send(NotificationKind.PASSWORD_RESET, 1, {"token": "123456"})
        executor.shutdown(wait=True)

    assert "queue down" in caplog.text


def test_unexpected_transport_error_is_swallowed(executor, caplog):
    dispatcher = ProfileChangeDispatcher(FailingTransport(KeyError("boom")), executor)

    with caplog.at_level(logging.ERROR):
        dispatcher.send(3, True)
        executor.shutdown(wait=True)

    assert "Unexpected error while dispatching" in caplog.text


def test_send_after_shutdown_drops_message(caplog):
    pool = ThreadPoolExecutor(max_workers=1)
    pool.shutdown(wait=True)
    dispatcher = NotificationDispatcher(CollectingTransport(), pool)

    with caplog.at_level(logging.WARNING):
        dispatcher.send(NotificationKind.WELCOME, 1, {})

    assert "dispatcher is stopped" in caplog.text


def test_profile_change_envelope(executor):
    transport = CollectingTransport()
    ProfileChangeDispatcher(transport, executor).send(12, False)
    executor.shutdown(wait=True)
    assert transport.messages == [{"userId": "12", "complete": False}]


def test_http_transport_posts_json():
    response = Mock()
    response.raise_for_status = Mock()
    with patch("user_platform.user_platform.user_service.notifications.httpx.post", return_value=response) as post:
        HttpTransport("http://notifications.local/send", timeout=2.0).deliver({"channel": "WELCOME_EMAIL"})

    post.assert_called_once_with(
        "http://notifications.local/send", json={"channel": "WELCOME_EMAIL"}, timeout=2.0
    )


def test_http_transport_wraps_http_errors():
    with patch(
        "user_platform.user_platform.user_service.notifications.httpx.post",
        side_effect=httpx.ConnectError("refused"),
    ):
        with pytest.raises(NotificationDispatchFailure):
            HttpTransport("http://notifications.local/send", timeout=2.0).deliver({})


def test_logging_transport_writes_message(caplog):
    with caplog.at_level(logging.INFO):
        LoggingTransport("notification").deliver({"channel": "WELCOME_EMAIL"})
    assert "WELCOME_EMAIL" in caplog.text


def test_password_reset_email_payload():
    notifier = Mock()
    account = Mock(id=5, email="a@example.com", full_name="A B")
    expires_at = datetime(2030, 1, 1, 12, 0, 0)

    send_password_reset_email(notifier, account, "654321", expires_at)

    notifier.send.assert_called_once_with(NotificationKind.PASSWORD_RESET, 5, {
        "token": "654321",
        "userEmail": "a@example.com",
        "expiresAt": "2030-01-01T12:00:00",
        "fullName": "A B",
    })
