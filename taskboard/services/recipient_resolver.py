"""Select the users who receive a notification for a project event."""
from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from taskboard.models.database_models import ProjectPermission, User
from taskboard.models.notifications import Recipient
from taskboard.services.notification_settings import NotificationSettings
from taskboard.services.project_permission import ProjectPermissionService
from taskboard.services.user_session import UserSession


logger = logging.getLogger(__name__)

RECIPIENT_COLUMNS = (User.id, User.username, User.name, User.email, User.language)


class RecipientResolver:
    """Combine project permissions, global toggles and per-project opt-ins."""

    def __init__(
        self,
        db: Session,
        user_session: UserSession | None = None,
        permissions: ProjectPermissionService | None = None,
        preferences: NotificationSettings | None = None,
    ):
        self.db = db
        self.user_session = user_session or UserSession.closed()
        self.permissions = permissions or ProjectPermissionService(db)
        self.preferences = preferences or NotificationSettings(db)

    def get_users_with_notification(
        self,
        project_id: int,
        exclude_users: Iterable[int] = (),
    ) -> list[Recipient]:
        """
        Users with notifications enabled and an email address who can see the project.

        Args:
            project_id: Project the event belongs to
            exclude_users: User ids to leave out

        Returns:
            Recipients ordered by user id
        """
        excluded = set(exclude_users)
        stmt = select(*RECIPIENT_COLUMNS)

        if not self.permissions.is_everybody_allowed(project_id):
            stmt = stmt.join(ProjectPermission, ProjectPermission.user_id == User.id).where(
                ProjectPermission.project_id == project_id
            )

        stmt = stmt.where(
            User.notifications_enabled.is_(True),
            User.email.is_not(None),
            User.email != "",
        )
        if excluded:
            stmt = stmt.where(User.id.not_in(excluded))

        rows = self.db.execute(stmt.order_by(User.id)).all()
        return [
            Recipient(id=row.id, username=row.username, name=row.name, email=row.email, language=row.language)
            for row in rows
        ]

    def get_users_list(
        self,
        project_id: int,
        exclude_users: Iterable[int] = (),
    ) -> list[Recipient]:
        """
        Final recipient list for a project event.

        The acting user is excluded, and users who restricted their
        notifications to other projects are dropped.
        """
        excluded = list(exclude_users)
        if self.user_session.is_open() and self.user_session.is_logged():
            excluded.append(self.user_session.get_id())

        users = self.get_users_with_notification(project_id, excluded)
        subscriptions = self.preferences.get_subscriptions(user.id for user in users)

        recipients = [user for user in users if subscriptions[user.id].includes(project_id)]

        logger.debug(
            "Resolved recipients | project=%s | candidates=%d | recipients=%d",
            project_id,
            len(users),
            len(recipients),
        )
        return recipients
