"""Tests for environment-driven settings."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from taskboard.config import Settings
from taskboard.logging_config import MAIL_LOGGERS, build_logging_config


def test_application_url_gets_trailing_slash():
    assert Settings(application_url="https://kb.example.org").application_url == "https://kb.example.org/"
    assert Settings(application_url="https://kb.example.org/").application_url == "https://kb.example.org/"


def test_blank_application_language_is_rejected():
    with pytest.raises(ValidationError):
        Settings(application_language="  ")


def test_log_level_is_normalized():
    assert Settings(log_level="debug").log_level == "DEBUG"
    with pytest.raises(ValidationError):
        Settings(log_level="chatty")


def test_mail_loggers_write_to_notifications_log(tmp_path):
    config = build_logging_config(tmp_path, "INFO")

    assert config["handlers"]["mail"]["filename"] == str(tmp_path / "notifications.log")
    for name in MAIL_LOGGERS:
        assert config["loggers"][name]["handlers"] == ["mail"]
