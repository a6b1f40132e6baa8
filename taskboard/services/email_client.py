"""SMTP mail transport for notification emails."""
from __future__ import annotations

import logging
import re
import smtplib
from email.message import EmailMessage
from email.utils import formataddr

from taskboard.config import Settings, get_settings
from taskboard.core.errors import DeliveryError


logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")
_LINE_BREAKS_RE = re.compile(r"[\r\n]+")


def html_to_text(html: str) -> str:
    """Cheap plain-text alternative for the HTML body."""
    text = _TAG_RE.sub("", html)
    return _BLANK_LINES_RE.sub("\n\n", text).strip()


def header_value(value: str | None) -> str:
    """Collapse line breaks; headers may not contain CR or LF."""
    return _LINE_BREAKS_RE.sub(" ", value or "").strip()


class EmailClient:
    """Send HTML emails through the configured SMTP relay."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    @property
    def sender(self) -> str:
        return self.settings.mail_from

    def _connect(self) -> smtplib.SMTP | None:
        if not self.settings.smtp_host:
            return None

        server = smtplib.SMTP(
            self.settings.smtp_host,
            self.settings.smtp_port,
            timeout=self.settings.smtp_timeout,
        )
        try:
            if self.settings.smtp_use_tls:
                server.starttls()
            if self.settings.smtp_username and self.settings.smtp_password:
                server.login(self.settings.smtp_username, self.settings.smtp_password)
        except Exception:
            server.quit()
            raise
        return server

    def build_message(self, to_email: str, to_name: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = header_value(subject)
        message["From"] = self.sender
        message["To"] = formataddr((header_value(to_name), header_value(to_email)))
        message.set_content(html_to_text(body))
        message.add_alternative(body, subtype="html")
        return message

    def send(self, to_email: str, to_name: str, subject: str, body: str) -> bool:
        """
        Deliver one email.

        Returns:
            True when handed to the relay, False when SMTP is not configured

        Raises:
            DeliveryError: the headers are unusable, or the relay refused the message or could not be reached
        """
        try:
            message = self.build_message(to_email, to_name, subject, body)
            server = self._connect()
            if server is None:
                logger.warning("SMTP_HOST not configured; email '%s' to %s suppressed", subject, to_email)
                return False
            with server:
                server.send_message(message)
        except (smtplib.SMTPException, OSError, ValueError) as exc:
            raise DeliveryError(to_email, str(exc)) from exc

        logger.info("Sent email '%s' to %s", subject, to_email)
        return True


def get_email_client() -> EmailClient:
    """FastAPI dependency returning the SMTP transport."""
    return EmailClient()
