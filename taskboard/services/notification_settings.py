"""Per-user notification preferences: global toggle plus optional project subset."""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Iterable, Mapping

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskboard.core.errors import UserNotFoundError
from taskboard.models.database_models import Project, User, UserNotification
from taskboard.models.notifications import Subscription, subscription_from_rows


logger = logging.getLogger(__name__)

_ENABLED_VALUES = {"1", "true", "on", "yes"}


def is_enabled_flag(value: Any) -> bool:
    """Interpret a form checkbox value; only explicit truthy markers enable notifications."""
    if value is None or value is False:
        return False
    return str(value).strip().lower() in _ENABLED_VALUES


def parse_project_selection(selection: Any) -> list[int]:
    """
    Extract project ids from the form selection map ``{project_id: checkbox_value}``.

    Anything that is not a mapping yields an empty selection; keys that are
    not positive integers are skipped.
    """
    if not isinstance(selection, Mapping):
        if selection not in (None, "", [], ()):
            logger.warning("Ignoring malformed project selection of type %s", type(selection).__name__)
        return []

    project_ids: list[int] = []
    for key in selection:
        text = str(key).strip()
        if not text.isdigit() or int(text) <= 0:
            logger.warning("Ignoring malformed project id %r in notification settings", key)
            continue
        project_id = int(text)
        if project_id not in project_ids:
            project_ids.append(project_id)
    return project_ids


class NotificationSettings:
    """Read and replace the notification preferences of one user."""

    def __init__(self, db: Session):
        self.db = db

    def _get_user(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def _existing_project_ids(self, project_ids: list[int]) -> list[int]:
        if not project_ids:
            return []
        found = set(
            self.db.execute(select(Project.id).where(Project.id.in_(project_ids))).scalars()
        )
        missing = [pid for pid in project_ids if pid not in found]
        if missing:
            logger.warning("Ignoring unknown project ids %s in notification settings", missing)
        return [pid for pid in project_ids if pid in found]

    def save_settings(self, user_id: int, values: Mapping[str, Any]) -> None:
        """
        Replace the user's preferences with the submitted form values.

        Subscription rows are always wiped first. When notifications are
        enabled one row is stored per selected project; an empty selection
        means every permitted project. The whole replacement is committed as
        a single transaction.

        Args:
            user_id: User whose preferences are saved
            values: ``{"notifications_enabled": 1, "projects": {5: 1, 7: 1}}``

        Raises:
            UserNotFoundError: Unknown user
        """
        user = self._get_user(user_id)
        enabled = is_enabled_flag(values.get("notifications_enabled"))

        try:
            self.db.execute(delete(UserNotification).where(UserNotification.user_id == user_id))
            user.notifications_enabled = enabled

            project_ids: list[int] = []
            if enabled:
                project_ids = self._existing_project_ids(parse_project_selection(values.get("projects")))
                for project_id in project_ids:
                    self.db.add(UserNotification(user_id=user_id, project_id=project_id))

            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to save notification settings for user %s", user_id)
            raise

        logger.info(
            "Saved notification settings | user=%s | enabled=%s | projects=%s",
            user_id,
            enabled,
            project_ids or "all",
        )

    def read_settings(self, user_id: int) -> dict[str, Any]:
        """
        Return the settings form values.

        ``notifications_enabled`` holds the stored flag and each subscribed
        project adds a ``project_<id>: True`` entry; unselected projects are absent.
        """
        user = self._get_user(user_id)
        values: dict[str, Any] = {"notifications_enabled": user.notifications_enabled}

        for project_id in self.get_project_ids(user_id):
            values[f"project_{project_id}"] = True

        return values

    def get_project_ids(self, user_id: int) -> list[int]:
        return list(
            self.db.execute(
                select(UserNotification.project_id)
                .where(UserNotification.user_id == user_id)
                .order_by(UserNotification.project_id)
            ).scalars()
        )

    def get_subscription(self, user_id: int) -> Subscription:
        return subscription_from_rows(self.get_project_ids(user_id))

    def get_subscriptions(self, user_ids: Iterable[int]) -> dict[int, Subscription]:
        """Subscriptions for many users in one query; users without rows get AllProjects."""
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}

        rows: dict[int, list[int]] = defaultdict(list)
        result = self.db.execute(
            select(UserNotification.user_id, UserNotification.project_id).where(
                UserNotification.user_id.in_(ids)
            )
        )
        for user_id, project_id in result:
            rows[user_id].append(project_id)

        return {user_id: subscription_from_rows(rows.get(user_id, [])) for user_id in ids}
