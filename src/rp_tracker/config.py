import os

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Load .env for local dev; deployed environments use real env vars
load_dotenv(override=False)


def _bool(name: str, default: bool) -> bool:
    """
    Helper to parse boolean environment variables.
    Accepts: 1, true, yes, on (case-insensitive).
    """
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")


def _norm_db_url(url: str | None) -> str | None:
    """
    Normalize database URL to use async drivers for SQLAlchemy.

    Ensures ``postgres`` URLs use ``asyncpg`` and plain ``sqlite`` URLs use
    ``aiosqlite``. URLs already specifying an async driver are returned as-is.
    """
    if not url:
        return None
    if url.startswith("postgres://"):
        url = "postgresql+asyncpg://" + url[len("postgres://") :]
    if url.startswith("postgresql://"):
        url = "postgresql+asyncpg://" + url[len("postgresql://") :]
    if url.startswith("sqlite://"):
        url = "sqlite+aiosqlite://" + url[len("sqlite://") :]
    return url


class Config(BaseSettings):
    """
    Application configuration loaded from environment variables.
    Uses pydantic for validation and parsing.
    """

    DATABASE_URL: str = Field(..., description="Database URL")
    LOG_LEVEL: str = Field("INFO", description="Root log level")
    ALERT_WEBHOOK_URL: str | None = Field(None, description="Webhook that receives error logs")
    WEBAPP_URL: str = Field("http://localhost:3000", description="Webapp origin allowed by CORS")
    HOST: str = Field("0.0.0.0", description="Server bind host")
    PORT: int = Field(8080, description="Server bind port")
    LOG_HISTORY_LIMIT: int = Field(
        10, ge=1, description="Most recent workout logs read for a recommendation"
    )

    # Feature flags
    FF_ADMIN_ALERTS: bool = Field(
        default_factory=lambda: _bool("FF_ADMIN_ALERTS", True),
        description="Send error logs to ALERT_WEBHOOK_URL",
    )
    FF_SETTINGS_LANDMARKS: bool = Field(
        default_factory=lambda: _bool("FF_SETTINGS_LANDMARKS", False),
        description="Classify volume landmarks from the exercise's own MEV/MAV/MRV settings",
    )

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def validate_database_url(cls, v):
        if not v:
            raise ValueError("DATABASE_URL environment variable is required")
        return _norm_db_url(v)

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown LOG_LEVEL: {v}")
        return level


SETTINGS = Config()  # pyright: ignore[reportCallIssue]
