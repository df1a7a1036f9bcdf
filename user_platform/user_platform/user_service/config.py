"""
Configuration management for the User Service
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """User Service configuration loaded from environment variables"""

    # Server Configuration
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "/app/logs"

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./app.db"

    # Session credentials
    SECRET_KEY: str = "change-this-secret-in-prod-0123456789abcdef"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Credential lifecycle
    PASSWORD_HASH_ROUNDS: int = 600000
    VERIFICATION_CODE_EXPIRE_MINUTES: int = 15
    PASSWORD_RESET_EXPIRE_MINUTES: int = 15
    MINIMUM_AGE: int = 18

    # Outbound events ("log" or "http")
    NOTIFICATION_TRANSPORT: str = "log"
    NOTIFICATION_SERVICE_URL: str = "http://notification-service:8080/api/v1/notifications"
    PROFILE_EVENTS_URL: str = "http://profile-service:8080/api/v1/profile-events"
    NOTIFICATION_TIMEOUT_SECONDS: float = 5.0
    NOTIFICATION_WORKERS: int = 2

    # CORS Configuration
    CORS_ORIGINS: List[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        frozen=True
    )


# Global settings instance
settings = Settings()
