"""Tests for the SMTP transport."""
from __future__ import annotations

import smtplib

import pytest

from taskboard.config import Settings
from taskboard.core.errors import DeliveryError
from taskboard.services import email_client as email_module
from taskboard.services.email_client import EmailClient, html_to_text


class FakeSMTP:
    instances: list["FakeSMTP"] = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.started_tls = False
        self.logged_in = None
        self.messages = []
        FakeSMTP.instances.append(self)

    def starttls(self):
        self.started_tls = True

    def login(self, username, password):
        self.logged_in = (username, password)

    def send_message(self, message):
        self.messages.append(message)

    def quit(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(email_module.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def _settings(**overrides) -> Settings:
    values = {"smtp_host": "smtp.example.com", "smtp_username": "mailer", "smtp_password": "secret"}
    values.update(overrides)
    return Settings(**values)


def test_html_to_text():
    assert html_to_text("<h2>Hello</h2>\n\n\n<p>World</p>") == "Hello\n\nWorld"


def test_send_builds_multipart_message(fake_smtp):
    client = EmailClient(_settings())

    assert client.send("alice@example.com", "Alice", "[Demo][New task] Fix (#1)", "<p>Body</p>") is True

    server = fake_smtp.instances[0]
    assert (server.host, server.port) == ("smtp.example.com", 587)
    assert server.started_tls is True
    assert server.logged_in == ("mailer", "secret")
    message = server.messages[0]
    assert message["To"] == "Alice <alice@example.com>"
    assert message["Subject"] == "[Demo][New task] Fix (#1)"
    assert message.get_body(("html",)).get_content().strip() == "<p>Body</p>"
    assert message.get_body(("plain",)).get_content().strip() == "Body"


def test_send_without_tls_or_credentials(fake_smtp):
    client = EmailClient(_settings(smtp_use_tls=False, smtp_username=None, smtp_password=None))

    client.send("alice@example.com", "", "Subject", "<p>Body</p>")

    server = fake_smtp.instances[0]
    assert server.started_tls is False
    assert server.logged_in is None
    assert server.messages[0]["To"] == "alice@example.com"


def test_send_is_suppressed_without_smtp_host(fake_smtp):
    client = EmailClient(_settings(smtp_host=None))

    assert client.send("alice@example.com", "Alice", "Subject", "<p>Body</p>") is False
    assert fake_smtp.instances == []


def test_send_failure_raises_delivery_error(monkeypatch):
    class RefusingSMTP(FakeSMTP):
        def send_message(self, message):
            raise smtplib.SMTPRecipientsRefused({"alice@example.com": (550, b"no such user")})

    monkeypatch.setattr(email_module.smtplib, "SMTP", RefusingSMTP)

    with pytest.raises(DeliveryError) as excinfo:
        EmailClient(_settings()).send("alice@example.com", "Alice", "Subject", "<p>Body</p>")

    assert excinfo.value.recipient == "alice@example.com"


def test_connection_error_raises_delivery_error(monkeypatch):
    def unreachable(*args, **kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(email_module.smtplib, "SMTP", unreachable)

    with pytest.raises(DeliveryError):
        EmailClient(_settings()).send("alice@example.com", "Alice", "Subject", "<p>Body</p>")


def test_line_breaks_are_collapsed_in_headers(fake_smtp):
    client = EmailClient(_settings())

    assert client.send("alice@example.com", "Evil\r\nBcc: x@y", "[Demo][New task] Ship\nrelease (#1)", "<p>Body</p>") is True

    message = fake_smtp.instances[0].messages[0]
    assert message["Subject"] == "[Demo][New task] Ship release (#1)"
    assert "\n" not in message["To"]
    assert message["Bcc"] is None


def test_unbuildable_message_raises_delivery_error(monkeypatch, fake_smtp):
    client = EmailClient(_settings())

    def broken_message(*args, **kwargs):
        raise ValueError("invalid header")

    monkeypatch.setattr(client, "build_message", broken_message)

    with pytest.raises(DeliveryError):
        client.send("alice@example.com", "Alice", "Subject", "<p>Body</p>")
    assert fake_smtp.instances == []
