"""Notification dispatching: localize and send one email per recipient."""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from sqlalchemy.orm import Session

from taskboard.core.errors import DeliveryError
from taskboard.models.notifications import Recipient
from taskboard.services.app_config import ApplicationConfig
from taskboard.services.email_client import EmailClient
from taskboard.services.mail_composer import MailComposer
from taskboard.services.recipient_resolver import RecipientResolver
from taskboard.services.translator import Translations, Translator, get_translator
from taskboard.services.user_session import UserSession


logger = logging.getLogger(__name__)


class NotificationService:
    """Send notification emails, each one in the recipient's own language."""

    def __init__(
        self,
        db: Session,
        user_session: UserSession | None = None,
        email_client: EmailClient | None = None,
        translator: Translator | None = None,
        config: ApplicationConfig | None = None,
        composer: MailComposer | None = None,
        resolver: RecipientResolver | None = None,
    ):
        self.db = db
        self.translator = translator or get_translator()
        self.config = config or ApplicationConfig(db, translator=self.translator)
        self.email_client = email_client or EmailClient()
        self.composer = composer or MailComposer(self.config, translator=self.translator)
        self.resolver = resolver or RecipientResolver(db, user_session=user_session)

    def _translations_for(self, user: Recipient) -> Translations:
        # Recipient language first, then the application language; never the session locale.
        if user.language:
            return self.translator.translations_for(user.language)
        return self.translator.translations_for(self.config.get_application_language())

    def send_emails(
        self,
        template: str,
        users: Iterable[Recipient],
        data: Mapping[str, Any],
    ) -> int:
        """
        Send one email per user, in list order.

        A delivery failure for one recipient is logged and the loop moves on;
        rendering errors abort the batch. The application locale is restored
        afterwards in every case.

        Args:
            template: Notification template, e.g. ``task_creation``
            users: Recipients from ``RecipientResolver.get_users_list``
            data: Template payload (``task``, ``comment``, ``project``...)

        Returns:
            Number of emails handed to the mail transport
        """
        sent = 0
        try:
            for user in users:
                translations = self._translations_for(user)
                subject = self.composer.get_mail_subject(template, data, translations)
                body = self.composer.get_mail_content(template, data, translations)

                try:
                    delivered = self.email_client.send(user.email, user.display_name, subject, body)
                except DeliveryError:
                    logger.exception(
                        "Notification '%s' not delivered to user %s", template, user.id
                    )
                    continue

                if delivered is not False:
                    sent += 1
        finally:
            self.config.setup_translations()

        logger.info("Notification '%s' dispatched | sent=%d", template, sent)
        return sent

    def notify(
        self,
        project_id: int,
        template: str,
        data: Mapping[str, Any],
        exclude_users: Iterable[int] = (),
    ) -> tuple[int, int]:
        """
        Resolve the recipients of a project event and send them the notification.

        Returns:
            (recipient count, emails sent)
        """
        users = self.resolver.get_users_list(project_id, exclude_users)
        sent = self.send_emails(template, users, data)
        return len(users), sent
