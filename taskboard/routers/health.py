"""Router exposing basic system endpoints."""
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from taskboard.config import get_settings
from taskboard.database import get_db
from taskboard.services.app_config import ApplicationConfig
from taskboard.services.translator import get_translator


logger = logging.getLogger(__name__)


router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("/status")
async def get_status() -> dict[str, str]:
    """Return a minimal status payload."""
    return {"status": "online"}


@router.get("/notifications")
async def get_notification_status(db: Annotated[Session, Depends(get_db)]) -> dict:
    """
    Report whether outbound notifications can work.

    Returns:
        dict: {
            "database": "ok",
            "smtp_configured": bool,
            "application_url": str | None,
            "application_language": str,
            "locales": list of available catalogs
        }
    """
    try:
        db.execute(text("SELECT 1"))
        config = ApplicationConfig(db)
        return {
            "database": "ok",
            "smtp_configured": bool(get_settings().smtp_host),
            "application_url": config.get("application_url"),
            "application_language": config.get_application_language(),
            "locales": get_translator().available_locales(),
        }
    except Exception:
        logger.exception("Notification status check failed")
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to check notification status")
