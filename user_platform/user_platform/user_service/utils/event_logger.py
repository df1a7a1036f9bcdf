"""
Logging setup and the authentication event audit trail.
"""
from datetime import datetime
from fastapi import Request
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
import sys
import logging
import os

from ..config import Settings
from ..models import AuthEvent, Account

logger = logging.getLogger(__name__)


def configure_logging(config: Settings) -> None:
    """Log to stdout and, when the log directory is usable, to a file."""
    handlers = [logging.StreamHandler(sys.stdout)]

    # Try to add file handler, but continue without it if directory creation fails
    try:
        os.makedirs(config.LOG_DIR, exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(config.LOG_DIR, "user_service.log")))
    except (OSError, PermissionError) as e:
        print(f"WARNING: Could not set up file logging: {e}", file=sys.stderr)

    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers
    )


ALLOWED_EVENT_TYPES = {
    "signup",
    "login_success",
    "login_failure",
    "account_verified",
    "password_reset_request",
    "password_reset",
    "password_change"
}


def _client_ip(request: Request):
    ip_address = None
    if request.client:
        ip_address = request.client.host

    # Check for X-Forwarded-For header (proxy/load balancer scenarios)
    if not ip_address and request.headers.get("x-forwarded-for"):
        # X-Forwarded-For can contain multiple IPs, take the first one
        ip_address = request.headers.get("x-forwarded-for").split(",")[0].strip()
    return ip_address


def log_auth_event(
    event_type: str,
    account: Account,
    request: Request,
    db: Session,
    metadata: dict = None
) -> None:
    """
    Record an authentication event in the audit table.

    Args:
        event_type: One of ALLOWED_EVENT_TYPES
        account: Account the event concerns
        request: FastAPI Request object
        db: Database session
        metadata: Optional dictionary of additional context

    Raises:
        ValueError: If event_type is invalid
    """
    if event_type not in ALLOWED_EVENT_TYPES:
        raise ValueError(
            f"Invalid event_type '{event_type}'. Must be one of: {', '.join(sorted(ALLOWED_EVENT_TYPES))}"
        )

    ip_address = _client_ip(request)
    user_agent = request.headers.get("user-agent")

    try:
        auth_event = AuthEvent(
            account_id=account.id,
            email=account.email,
            event_type=event_type,
            ip_address=ip_address,
            user_agent=user_agent,
            timestamp=datetime.utcnow(),
            event_metadata=metadata or {}
        )

        db.add(auth_event)
        db.commit()

        logger.info(
            "AUTH %s user_id=%s ip=%s timestamp=%s",
            event_type, account.id, ip_address, auth_event.timestamp.isoformat()
        )

    except SQLAlchemyError as e:
        # Audit failure must not break the auth flow
        logger.warning(
            "Failed to log auth event - user_id=%s, event_type=%s, error=%s",
            account.id, event_type, e
        )
        db.rollback()
