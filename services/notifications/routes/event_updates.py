"""Endpoint de aviso de actualización de evento a los compradores"""
import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from services.notifications.models.notification import (
    EventUpdateNotificationRequest,
    EventUpdateNotificationResult,
)
from services.notifications.services.notification_service import NotificationService
from shared.database.session import get_db
from shared.utils.rate_limiter import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/event-update-notification", response_model=EventUpdateNotificationResult)
@limiter.limit(RATE_LIMITS["email"])
async def event_update_notification(
    request: Request,
    payload: EventUpdateNotificationRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Avisar a los compradores de un evento (email + notificación in-app)

    onlyConfirmed=true (por defecto) omite las órdenes no confirmadas.
    """
    if not payload.eventId:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": "eventId is required"},
        )

    changes = {key: change.model_dump() for key, change in (payload.changes or {}).items()}
    event = payload.event.model_dump() if payload.event else None

    try:
        result = await NotificationService().notify_event_update(
            db,
            payload.eventId,
            changes=changes,
            event=event,
            only_confirmed=payload.onlyConfirmed,
        )
    except Exception as e:
        logger.error(f"Error notificando actualización del evento {payload.eventId}: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": str(e)},
        )

    return {"success": True, **result}
