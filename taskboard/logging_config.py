"""Central logging configuration for the notification service."""
from __future__ import annotations

import logging
from logging.config import dictConfig
from pathlib import Path

from pydantic import ValidationError

from taskboard.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Loggers whose records also go to notifications.log, the delivery audit trail.
MAIL_LOGGERS = (
    "taskboard.services.notification_service",
    "taskboard.services.email_client",
    "taskboard.services.task_notifier",
)

_configured = False


def _file_handler(path: Path, level: str) -> dict:
    return {
        "class": "logging.FileHandler",
        "filename": str(path),
        "encoding": "utf-8",
        "formatter": "standard",
        "level": level,
    }


def build_logging_config(log_dir: Path, level: str) -> dict:
    """dictConfig payload: console and taskboard.log for everything, notifications.log for mail."""
    loggers = {name: {"level": level, "handlers": ["mail"]} for name in MAIL_LOGGERS}
    # SQL echo is driven by Settings.debug; keep the engine logger quiet otherwise.
    loggers["sqlalchemy.engine"] = {"level": "WARNING"}
    loggers["apscheduler"] = {"level": "WARNING"}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"standard": {"format": LOG_FORMAT}},
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "standard", "level": level},
            "file": _file_handler(log_dir / "taskboard.log", level),
            "mail": _file_handler(log_dir / "notifications.log", level),
        },
        "loggers": loggers,
        "root": {"level": level, "handlers": ["console", "file"]},
    }


def configure_logging() -> None:
    """Configure application logging once per process."""

    global _configured
    if _configured:
        return

    try:
        settings = get_settings()
        log_dir, level = settings.log_dir, settings.log_level
    except ValidationError:
        # Invalid environment: log to the defaults, the settings error resurfaces on first use.
        log_dir, level = Path("logs"), "INFO"
    log_dir.mkdir(parents=True, exist_ok=True)

    dictConfig(build_logging_config(log_dir, level))
    logging.getLogger(__name__).debug("Logging configured | level=%s | dir=%s", level, log_dir)
    _configured = True
