"""
Fire-and-forget dispatch of e-mail notifications and profile-change events.

Callers hand a message to a dispatcher and return immediately: delivery runs
on a worker pool, and any failure there is logged and dropped.
"""
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Optional
import enum
import logging

import httpx

from .config import Settings, settings
from .exceptions import NotificationDispatchFailure

logger = logging.getLogger(__name__)


class NotificationKind(str, enum.Enum):
    WELCOME = "WELCOME_EMAIL"
    ACCOUNT_VERIFICATION = "ACCOUNT_VERIFICATION_EMAIL"
    PASSWORD_RESET = "PASSWORD_RESET_EMAIL"


class LoggingTransport:
    """Development transport: writes each message to the log instead of sending it."""

    def __init__(self, name: str):
        self.name = name

    def deliver(self, message: dict) -> None:
        logger.info("[DEV] %s message: %s", self.name, message)


class HttpTransport:
    """POSTs each message as JSON to a downstream service."""

    def __init__(self, url: str, timeout: float):
        self.url = url
        self.timeout = timeout

    def deliver(self, message: dict) -> None:
        try:
            response = httpx.post(self.url, json=message, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise NotificationDispatchFailure(f"Delivery to {self.url} failed: {exc}") from exc


class _BackgroundPublisher:
    def __init__(self, transport, executor: ThreadPoolExecutor):
        self._transport = transport
        self._executor = executor

    def _publish(self, message: dict) -> None:
        try:
            self._executor.submit(self._deliver, message)
        except RuntimeError as exc:
            # Executor already shut down
            logger.warning("Dropping message, dispatcher is stopped: %s", exc)

    def _deliver(self, message: dict) -> None:
        try:
            self._transport.deliver(message)
        except NotificationDispatchFailure as exc:
            logger.warning("Notification skipped: %s", exc)
        except Exception as exc:
            logger.error("Unexpected error while dispatching %s: %s", message, exc, exc_info=True)


class NotificationDispatcher(_BackgroundPublisher):
    def send(self, kind: NotificationKind, account_id: int, payload: dict) -> None:
        message = {
            "userId": str(account_id) if account_id is not None else None,
            "channel": kind.value,
            "message": payload,
            "createdAt": datetime.utcnow().isoformat(),
        }
        self._publish(message)
        logger.info("Notification queued: channel=%s user_id=%s", kind.value, account_id)


class ProfileChangeDispatcher(_BackgroundPublisher):
    def send(self, account_id: int, complete: bool) -> None:
        self._publish({"userId": str(account_id), "complete": complete})
        logger.info("Profile change queued: user_id=%s complete=%s", account_id, complete)


# ---------------- E-mail helpers ----------------

def send_welcome_email(notifier, account) -> None:
    notifier.send(NotificationKind.WELCOME, account.id, {
        "userEmail": account.email,
        "fullName": account.full_name,
    })


def send_verification_email(notifier, account) -> None:
    expires_at = account.verification_code_expires_at
    notifier.send(NotificationKind.ACCOUNT_VERIFICATION, account.id, {
        "verificationCode": account.verification_code,
        "expiresAt": expires_at.isoformat() if expires_at else None,
        "fullName": account.full_name,
        "userEmail": account.email,
    })


def send_password_reset_email(notifier, account, reset_code: str, expires_at: datetime) -> None:
    notifier.send(NotificationKind.PASSWORD_RESET, account.id, {
        "token": reset_code,
        "userEmail": account.email,
        "expiresAt": expires_at.isoformat(),
        "fullName": account.full_name,
    })


# ---------------- Process-wide dispatchers ----------------

def _transport_for(config: Settings, name: str, url: str):
    if config.NOTIFICATION_TRANSPORT.lower() == "http":
        return HttpTransport(url, config.NOTIFICATION_TIMEOUT_SECONDS)
    return LoggingTransport(name)


_executor: Optional[ThreadPoolExecutor] = None
_notifier: Optional[NotificationDispatcher] = None
_profile_events: Optional[ProfileChangeDispatcher] = None


def start_dispatchers(config: Settings = settings) -> None:
    global _executor, _notifier, _profile_events
    if _executor is not None:
        return
    _executor = ThreadPoolExecutor(max_workers=config.NOTIFICATION_WORKERS, thread_name_prefix="dispatch")
    _notifier = NotificationDispatcher(
        _transport_for(config, "notification", config.NOTIFICATION_SERVICE_URL), _executor
    )
    _profile_events = ProfileChangeDispatcher(
        _transport_for(config, "profile-change", config.PROFILE_EVENTS_URL), _executor
    )


def stop_dispatchers() -> None:
    """Wait for queued deliveries, then release the worker pool."""
    global _executor, _notifier, _profile_events
    if _executor is not None:
        _executor.shutdown(wait=True)
    _executor = _notifier = _profile_events = None


def get_notifier() -> NotificationDispatcher:
    start_dispatchers()
    return _notifier


def get_profile_events() -> ProfileChangeDispatcher:
    start_dispatchers()
    return _profile_events
