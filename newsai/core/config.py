"""
Application configuration management.

This module defines a ``Settings`` dataclass that reads its values from
environment variables at instantiation time.  A ``.env`` file in the
working directory is loaded first so local development does not need the
variables exported in the shell.  Each configuration option has a
reasonable default which can be overridden by setting the corresponding
environment variable.
"""

from dataclasses import dataclass, field
import os
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_JWT_SECRET = "your-super-secret-jwt-key-change-this-in-production"


def _env_list(name: str, default: str = "") -> List[str]:
    """Split a comma separated environment variable into trimmed values."""
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Configuration values loaded from environment variables with defaults."""

    # Application settings
    ENVIRONMENT: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))
    PORT: int = field(default_factory=lambda: int(os.getenv("PORT", "3000")))
    LOG_LEVEL: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    LOG_RETENTION_DAYS: int = field(default_factory=lambda: int(os.getenv("LOG_RETENTION_DAYS", "30")))
    LOG_TO_DATABASE: bool = field(default_factory=lambda: _env_bool("LOG_TO_DATABASE", "true"))

    # Database
    DATABASE_URL: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///./news_ai.db"))

    # Generative AI configuration
    GEMINI_API_KEY: Optional[str] = field(default_factory=lambda: os.getenv("GEMINI_API_KEY"))
    LLM_MODEL: str = field(default_factory=lambda: os.getenv("LLM_MODEL", "gemini-2.5-flash"))
    LLM_MAX_TOKENS: int = field(default_factory=lambda: int(os.getenv("LLM_MAX_TOKENS", "8192")))
    LLM_TEMPERATURE: float = field(default_factory=lambda: float(os.getenv("LLM_TEMPERATURE", "0.7")))

    # RSS ingestion.  ``RSS_FEEDS`` is a comma separated list of feed URLs
    # registered as sources on startup; ``FEED_CHECK_INTERVAL`` is in minutes.
    RSS_FEEDS: List[str] = field(default_factory=lambda: _env_list("RSS_FEEDS"))
    FEED_CHECK_INTERVAL: int = field(default_factory=lambda: int(os.getenv("FEED_CHECK_INTERVAL", "15")))
    CHECK_FEEDS_ON_STARTUP: bool = field(default_factory=lambda: _env_bool("CHECK_FEEDS_ON_STARTUP", "true"))

    # Scheduler
    ENABLE_SCHEDULER: bool = field(default_factory=lambda: _env_bool("ENABLE_SCHEDULER", "true"))
    SCHEDULER_TIMEZONE: str = field(default_factory=lambda: os.getenv("SCHEDULER_TIMEZONE", "UTC"))

    # Authentication
    JWT_SECRET: str = field(default_factory=lambda: os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET))
    JWT_EXPIRES_HOURS: int = field(default_factory=lambda: int(os.getenv("JWT_EXPIRES_HOURS", "168")))
    BCRYPT_ROUNDS: int = field(default_factory=lambda: int(os.getenv("BCRYPT_ROUNDS", "12")))

    # Analytics
    WORD_FREQUENCY_ARTICLE_LIMIT: int = field(
        default_factory=lambda: int(os.getenv("WORD_FREQUENCY_ARTICLE_LIMIT", "10"))
    )
    WORD_FREQUENCY_TOP_K: int = field(default_factory=lambda: int(os.getenv("WORD_FREQUENCY_TOP_K", "30")))
    # Only articles mentioning this keyword (case-insensitive) are used for
    # reports.  Empty means every article in the window qualifies.
    REPORT_KEYWORD: str = field(default_factory=lambda: os.getenv("REPORT_KEYWORD", "").strip())
    # ``global`` keeps one shared report history; ``user`` scopes lookups to
    # the requesting user.
    REPORT_SCOPE: str = field(default_factory=lambda: os.getenv("REPORT_SCOPE", "global").lower())

    # CORS
    CORS_ORIGINS: List[str] = field(default_factory=lambda: _env_list(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:3001",
    ))

    @property
    def is_development(self) -> bool:
        """Return True if the environment is set to development."""
        return self.ENVIRONMENT.lower() == "development"

    @property
    def has_ai_key(self) -> bool:
        return bool(self.GEMINI_API_KEY)

    @property
    def feed_check_cron(self) -> str:
        """Cron expression firing every ``FEED_CHECK_INTERVAL`` minutes."""
        return f"*/{self.FEED_CHECK_INTERVAL} * * * *"

    @property
    def reports_per_user(self) -> bool:
        return self.REPORT_SCOPE == "user"

    def warnings(self) -> List[str]:
        """Return human readable warnings about incomplete configuration."""
        messages = []
        if not self.has_ai_key:
            messages.append("GEMINI_API_KEY is not set; AI features are disabled")
        if self.JWT_SECRET == DEFAULT_JWT_SECRET:
            messages.append("JWT_SECRET is using the default value; set a secure JWT_SECRET")
        if not self.RSS_FEEDS:
            messages.append("No RSS feeds configured (RSS_FEEDS is empty)")
        return messages


# Instantiate a single settings object that can be imported across the
# application.
settings = Settings()
