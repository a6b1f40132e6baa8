"""API endpoints backing the user notification settings form."""
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from taskboard.core.errors import NotificationError, notification_error_to_http
from taskboard.database import get_db
from taskboard.models.schemas import NotificationSettingsResponse, NotificationSettingsUpdate
from taskboard.services.notification_settings import NotificationSettings


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["notification_settings"])


@router.get("/{user_id}/notifications", response_model=NotificationSettingsResponse)
async def read_notification_settings(
    user_id: int,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Get the notification settings of a user.

    Returns:
        ``notifications_enabled`` plus one ``project_<id>: true`` entry per subscribed project
    """
    try:
        return NotificationSettings(db).read_settings(user_id)
    except NotificationError as e:
        raise notification_error_to_http(e)


@router.put("/{user_id}/notifications", response_model=NotificationSettingsResponse)
async def save_notification_settings(
    user_id: int,
    payload: NotificationSettingsUpdate,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Replace the notification settings of a user and return the stored values.

    Args:
        user_id: User to update
        payload: ``notifications_enabled`` flag and ``projects`` selection map
    """
    store = NotificationSettings(db)
    try:
        store.save_settings(user_id, payload.model_dump())
        return store.read_settings(user_id)
    except NotificationError as e:
        raise notification_error_to_http(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to save notification settings for user %s", user_id)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to save notification settings: {str(e)}"
        )
