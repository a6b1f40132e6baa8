"""API endpoint the board calls after a task-related change."""
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from taskboard.core.errors import NotificationError, notification_error_to_http
from taskboard.database import get_db
from taskboard.models.schemas import TaskEventRequest, TaskEventResponse
from taskboard.services.email_client import EmailClient, get_email_client
from taskboard.services.notification_service import NotificationService
from taskboard.services.task_notifier import TaskNotifier
from taskboard.services.user_session import UserSession, get_user_session


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/events", tags=["events"])


@router.post("", response_model=TaskEventResponse, status_code=202)
async def dispatch_task_event(
    payload: TaskEventRequest,
    db: Annotated[Session, Depends(get_db)],
    user_session: Annotated[UserSession, Depends(get_user_session)],
    email_client: Annotated[EmailClient, Depends(get_email_client)],
):
    """
    Notify project members about a task event.

    The user identified by the ``X-User-Id`` header triggered the event and
    is never notified.
    """
    logger.info(
        "Handling event %s for task %s | actor=%s",
        payload.event,
        payload.task_id,
        user_session.get_id(),
    )
    notifications = NotificationService(db, user_session=user_session, email_client=email_client)
    notifier = TaskNotifier(db, notifications=notifications)

    try:
        return notifier.notify_task_event(
            payload.event,
            payload.task_id,
            extra=payload.data,
            exclude_users=payload.exclude_users,
        )
    except NotificationError as e:
        raise notification_error_to_http(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to dispatch event %s", payload.event)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to dispatch notification: {str(e)}"
        )
