import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import db_session
from app.dependencies import current_user_id
from app.exceptions import NotFoundError
from app.models.api.notifications import (
    MarkNotificationsReadResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from app.services.notifications_service import NotificationsService
from app.services.unread_counter_service import UnreadCounterService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    limit: Optional[int] = Query(
        50, description="Maximum number of notifications to return", ge=1, le=1000
    ),
    offset: Optional[int] = Query(
        0, description="Number of notifications to skip", ge=0
    ),
    unread_only: bool = Query(False, description="Only unread notifications"),
    user_id: UUID = Depends(current_user_id),
    db: AsyncSession = Depends(db_session),
) -> List[NotificationResponse]:
    """List the acting user's notifications, newest first."""
    try:
        service = NotificationsService(db)
        return await service.list_notifications(
            user_id, limit=limit, offset=offset, unread_only=unread_only
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Failed to list notifications")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    user_id: UUID = Depends(current_user_id),
) -> UnreadCountResponse:
    """Number of unread notifications for the acting user."""
    try:
        service = UnreadCounterService()
        return UnreadCountResponse(count=await service.get_count(user_id))
    except Exception:
        logger.exception("Failed to count unread notifications")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/read-all", response_model=MarkNotificationsReadResponse)
async def mark_all_notifications_read(
    user_id: UUID = Depends(current_user_id),
    db: AsyncSession = Depends(db_session),
) -> MarkNotificationsReadResponse:
    """Mark every unread notification of the acting user read."""
    try:
        service = NotificationsService(db)
        return MarkNotificationsReadResponse(
            updated=await service.mark_all_read(user_id)
        )
    except Exception:
        logger.exception("Failed to mark notifications read")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: UUID,
    user_id: UUID = Depends(current_user_id),
    db: AsyncSession = Depends(db_session),
) -> NotificationResponse:
    """Mark one of the acting user's notifications read."""
    try:
        service = NotificationsService(db)
        return await service.mark_read(notification_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logger.exception("Failed to mark notification %s read", notification_id)
        raise HTTPException(status_code=500, detail="Internal server error")
