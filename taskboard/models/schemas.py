"""Pydantic models describing API payloads."""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class NotificationSettingsUpdate(BaseModel):
    """Form values posted by the notification settings page.

    ``projects`` maps a project id to its checkbox value; only the keys matter.
    It is typed loosely on purpose so malformed selections reach the store,
    which skips them instead of rejecting the whole form.
    """

    notifications_enabled: Any = 0
    projects: Any = Field(default_factory=dict)


class NotificationSettingsResponse(BaseModel):
    """Settings as read back for the form: ``project_<id>`` flags for checked projects."""

    model_config = ConfigDict(extra="allow")

    notifications_enabled: bool | None


class TaskEventRequest(BaseModel):
    """Event raised by the board after a task-related change."""

    event: str = Field(min_length=1, description="Event name, e.g. task.create or comment.update")
    task_id: int = Field(ge=1)
    data: dict[str, Any] = Field(default_factory=dict, description="Extra payload: comment, subtask, file, changes")
    exclude_users: list[int] = Field(default_factory=list)


class TaskEventResponse(BaseModel):
    """Outcome of a dispatched event."""

    event: str
    template: str
    project_id: int
    recipients: int
    sent: int
