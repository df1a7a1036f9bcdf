from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Date, Float, Enum, Index, JSON
from datetime import datetime
from .db import Base
from sqlalchemy.orm import relationship
import enum
import uuid


class Role(str, enum.Enum):
    TENANT = "TENANT"
    HOST = "HOST"
    ADMIN = "ADMIN"


DEFAULT_ROLES = [Role.TENANT.value]


class Account(Base):
    __tablename__ = "accounts"
    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)
    birthday = Column(Date, nullable=False)
    phone_number = Column(String, nullable=False)
    wallet_address = Column(String, nullable=True)
    profile_picture = Column(String, nullable=True)
    # Account verification (one active code at a time)
    verification_code = Column(String, nullable=True)
    verification_code_expires_at = Column(DateTime, nullable=True)
    enabled = Column(Boolean, default=False, nullable=False)
    roles = Column(JSON, default=lambda: list(DEFAULT_ROLES), nullable=False)
    rating = Column(Float, nullable=True)
    score = Column(Integer, default=100, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    reset_tokens = relationship("PasswordResetToken", back_populates="account", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class PasswordResetToken(Base):
    __tablename__ = "password_reset_tokens"
    id = Column(Integer, primary_key=True, index=True)
    # SHA-256 digest of the secret sent to the user, never the secret itself.
    # Unique among live rows only, so spent digests can be drawn again.
    token_hash = Column(String, index=True, nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used = Column(Boolean, default=False, nullable=False)
    valid = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    account = relationship("Account", back_populates="reset_tokens")


class AuthEvent(Base):
    __tablename__ = "auth_events"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    email = Column(String, nullable=False)
    event_type = Column(
        Enum("signup", "login_success", "login_failure", "account_verified",
             "password_reset_request", "password_reset", "password_change",
             name="auth_event_type"),
        nullable=False
    )
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)
    event_metadata = Column(JSON, nullable=True)

    __table_args__ = (
        Index('ix_auth_events_account_id', 'account_id'),
        Index('ix_auth_events_timestamp', 'timestamp'),
        Index('ix_auth_events_event_type', 'event_type'),
        Index('ix_auth_events_account_id_timestamp', 'account_id', 'timestamp'),
    )

    def to_dict(self) -> dict:
        """
        Serialize AuthEvent to dictionary for API responses.

        Returns:
            Dictionary with all event fields, UUIDs as strings,
            datetimes in ISO 8601 format
        """
        return {
            "id": str(self.id),
            "account_id": self.account_id,
            "email": self.email,
            "event_type": self.event_type,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "metadata": self.event_metadata or {}
        }
