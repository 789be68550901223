"""
Application configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal, Optional, Self


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "TestLink API"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # API
    API_PREFIX: str = "/api"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Security
    # IMPORTANT: Must be set in .env file - no default for security
    SECRET_KEY: str = Field(..., description="Application secret key (required)")

    # Public origin used when building candidate links. When empty, the origin
    # of the admin request that generated the link is used instead.
    PUBLIC_BASE_URL: Optional[str] = None

    # Test links
    TEST_LINK_EXPIRE_DAYS: int = Field(
        default=7, description="Days a generated test link stays valid"
    )
    QUESTION_TIME_LIMIT_SECONDS: int = Field(
        default=15, description="Countdown per question in the candidate flow"
    )

    # Admin sessions
    ADMIN_SESSION_COOKIE: str = "session"
    ADMIN_SESSION_HOURS: int = 24
    SESSION_SWEEP_INTERVAL_MINUTES: int = Field(
        default=60,
        description="Interval between sweeps of expired admin sessions (0 disables)",
    )

    # Sentry Error Tracking
    SENTRY_DSN: str = Field(
        default="",
        description="Sentry DSN for error tracking (leave empty to disable)",
    )
    SENTRY_TRACES_SAMPLE_RATE: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Sentry traces sample rate (0.0-1.0, 0.1 = 10% of transactions)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_durations(self) -> Self:
        """Reject durations that would make links or countdowns unusable."""
        positive = {
            "TEST_LINK_EXPIRE_DAYS": self.TEST_LINK_EXPIRE_DAYS,
            "QUESTION_TIME_LIMIT_SECONDS": self.QUESTION_TIME_LIMIT_SECONDS,
            "ADMIN_SESSION_HOURS": self.ADMIN_SESSION_HOURS,
        }
        non_positive = sorted(name for name, value in positive.items() if value <= 0)
        if non_positive:
            raise ValueError(f"Settings must be positive: {', '.join(non_positive)}")
        if self.SESSION_SWEEP_INTERVAL_MINUTES < 0:
            raise ValueError("SESSION_SWEEP_INTERVAL_MINUTES cannot be negative")
        return self

    @model_validator(mode="after")
    def normalize_public_base_url(self) -> Self:
        """Strip the trailing slash so links never contain '//test/'."""
        if self.PUBLIC_BASE_URL:
            self.PUBLIC_BASE_URL = self.PUBLIC_BASE_URL.rstrip("/") or None
        return self


# mypy doesn't understand that pydantic_settings loads required fields from env vars
settings = Settings()  # type: ignore[call-arg]
