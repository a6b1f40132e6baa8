"""
Exceptions raised by the notification services and their HTTP mapping.
Routes stay thin: they call the services and translate failures with ``notification_error_to_http``.
"""
from __future__ import annotations

from fastapi import HTTPException


class NotificationError(Exception):
    """Base class for notification failures."""


class RenderError(NotificationError):
    """A mail body template is missing or failed to render."""

    def __init__(self, template_key: str, reason: str | None = None) -> None:
        message = f"Unable to render template '{template_key}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.template_key = template_key


class DeliveryError(NotificationError):
    """The mail transport refused or failed to deliver a message."""

    def __init__(self, recipient: str, reason: str) -> None:
        super().__init__(f"Failed to deliver email to {recipient}: {reason}")
        self.recipient = recipient


class UserNotFoundError(NotificationError):
    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class TaskNotFoundError(NotificationError):
    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class UnknownEventError(NotificationError):
    def __init__(self, event_name: str) -> None:
        super().__init__(f"No notification is bound to event '{event_name}'")
        self.event_name = event_name


# (exception type, status code). First match wins.
ERROR_STATUS_RULES: list[tuple[type[NotificationError], int]] = [
    (UserNotFoundError, 404),
    (TaskNotFoundError, 404),
    (UnknownEventError, 400),
    (DeliveryError, 502),
    (RenderError, 500),
]


def notification_error_to_http(exc: NotificationError) -> HTTPException:
    """Map a notification exception to an HTTPException, defaulting to 500."""
    for error_type, status_code in ERROR_STATUS_RULES:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
