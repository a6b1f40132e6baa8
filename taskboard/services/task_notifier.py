"""Turn board events into notification emails."""
from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import date
from typing import Any, Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from taskboard.core.errors import TaskNotFoundError, UnknownEventError
from taskboard.models.database_models import Project, Task
from taskboard.services.notification_service import NotificationService


logger = logging.getLogger(__name__)


EVENT_TEMPLATES: dict[str, str] = {
    "task.create": "task_creation",
    "task.update": "task_update",
    "task.close": "task_close",
    "task.open": "task_open",
    "task.move.column": "task_move_column",
    "task.move.position": "task_move_position",
    "task.assignee_change": "task_assignee_change",
    "comment.create": "comment_creation",
    "comment.update": "comment_update",
    "subtask.create": "subtask_creation",
    "subtask.update": "subtask_update",
    "file.create": "file_creation",
}

# Extra payload keys accepted from the caller alongside the task itself.
EXTRA_PAYLOAD_KEYS = ("comment", "subtask", "file", "changes")


def task_payload(task: Task) -> dict[str, Any]:
    """Template-friendly view of a task."""
    owner = task.owner
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "project_id": task.project_id,
        "project_name": task.project.name,
        "column_title": task.column_title,
        "position": task.position,
        "owner_id": task.owner_id,
        "assignee_username": owner.username if owner else None,
        "assignee_name": (owner.name or owner.username) if owner else None,
        "date_due": task.date_due.isoformat() if task.date_due else None,
        "is_active": task.is_active,
    }


class TaskNotifier:
    """Map task events to templates and fan them out to project members."""

    def __init__(self, db: Session, notifications: NotificationService | None = None):
        self.db = db
        self.notifications = notifications or NotificationService(db)

    def _load_task(self, task_id: int) -> Task:
        task = self.db.execute(
            select(Task)
            .where(Task.id == task_id)
            .options(joinedload(Task.project), joinedload(Task.owner))
        ).scalar_one_or_none()
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def notify_task_event(
        self,
        event_name: str,
        task_id: int,
        extra: Mapping[str, Any] | None = None,
        exclude_users: Iterable[int] = (),
    ) -> dict[str, Any]:
        """
        Send the notification bound to ``event_name`` for a task.

        Args:
            event_name: Board event, e.g. ``task.create`` or ``comment.update``
            task_id: Task the event is about
            extra: Optional ``comment``/``subtask``/``file``/``changes`` payload
            exclude_users: Additional user ids that must not be notified

        Returns:
            Dict with event, template, project_id, recipients and sent counts

        Raises:
            UnknownEventError: No template is bound to the event
            TaskNotFoundError: Unknown task
        """
        template = EVENT_TEMPLATES.get(event_name)
        if template is None:
            raise UnknownEventError(event_name)

        task = self._load_task(task_id)

        data: dict[str, Any] = {}
        for key in EXTRA_PAYLOAD_KEYS:
            if extra and key in extra:
                data[key] = extra[key]
        data["task"] = task_payload(task)

        recipients, sent = self.notifications.notify(task.project_id, template, data, exclude_users)
        logger.info(
            "Event %s on task %s | template=%s | recipients=%d | sent=%d",
            event_name,
            task_id,
            template,
            recipients,
            sent,
        )
        return {
            "event": event_name,
            "template": template,
            "project_id": task.project_id,
            "recipients": recipients,
            "sent": sent,
        }

    def get_due_tasks(self, today: date) -> list[Task]:
        """Open tasks of active projects whose due date is today or earlier."""
        return list(
            self.db.execute(
                select(Task)
                .join(Project, Project.id == Task.project_id)
                .where(
                    Task.is_active.is_(True),
                    Project.is_active.is_(True),
                    Task.date_due.is_not(None),
                    Task.date_due <= today,
                )
                .options(joinedload(Task.project), joinedload(Task.owner))
                .order_by(Task.project_id, Task.date_due, Task.id)
            ).scalars()
        )

    def notify_due_tasks(self, today: date | None = None) -> dict[int, int]:
        """
        Send one ``task_due`` email per project listing its due tasks.

        Returns:
            Mapping project id -> emails sent
        """
        today = today or date.today()
        by_project: "OrderedDict[int, list[Task]]" = OrderedDict()
        for task in self.get_due_tasks(today):
            by_project.setdefault(task.project_id, []).append(task)

        summary: dict[int, int] = {}
        for project_id, tasks in by_project.items():
            data = {
                "project": tasks[0].project.name,
                "tasks": [task_payload(task) for task in tasks],
            }
            _, sent = self.notifications.notify(project_id, "task_due", data)
            summary[project_id] = sent
            logger.info("Due tasks for project %s | tasks=%d | sent=%d", project_id, len(tasks), sent)

        return summary
