"""Application configuration management."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    """Notification service settings read from the environment and `.env`."""

    database_url: str = Field(
        default="sqlite:///./data/taskboard.db",
        description="SQLAlchemy-compatible database URL.",
    )
    app_host: str = Field(default="0.0.0.0")
    app_port: int = Field(default=8000, ge=1, le=65535)

    debug: bool = Field(default=False)

    application_url: str = Field(
        default="http://localhost:8000/",
        description="Public base URL used to build links inside notification emails.",
    )
    application_language: str = Field(default="en_US")

    mail_from: str = Field(default="Taskboard <notifications@taskboard.local>")
    smtp_host: str | None = Field(default=None)
    smtp_port: int = Field(default=587, ge=1, le=65535)
    smtp_username: str | None = Field(default=None)
    smtp_password: str | None = Field(default=None)
    smtp_use_tls: bool = Field(default=True)
    smtp_timeout: float = Field(default=10.0, gt=0)

    locale_dir: Path = Field(default=PACKAGE_DIR / "locales")
    template_dir: Path = Field(default=PACKAGE_DIR / "templates")

    log_level: str = Field(default="INFO")
    log_dir: Path = Field(default=Path("logs"))
    scheduler_hour: int = Field(default=8, ge=0, le=23)
    scheduler_minute: int = Field(default=0, ge=0, le=59)
    scheduler_lock_file: Path = Field(default=Path(".scheduler.lock"))

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("application_url")
    @classmethod
    def ensure_trailing_slash(cls, value: str) -> str:
        # Templates append "task/<id>" directly to the base URL.
        value = value.strip()
        if value and not value.endswith("/"):
            value += "/"
        return value

    @field_validator("application_language")
    @classmethod
    def validate_language(cls, value: str) -> str:
        """Reject blank locale codes so the translator always has a fallback."""

        value = value.strip()
        if not value:
            raise ValueError("APPLICATION_LANGUAGE cannot be empty")
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        valid = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        upper = value.upper()
        if upper not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(sorted(valid))}")
        return upper


@lru_cache()
def get_settings() -> Settings:
    """Settings are read once per process."""

    settings = Settings()
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    return settings
