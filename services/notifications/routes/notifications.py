"""Rutas de notificaciones in-app"""
from typing import Dict, List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from services.notifications.models.notification import NotificationResponse
from services.notifications.services.notification_service import NotificationService
from shared.auth.dependencies import get_current_user
from shared.database.session import get_db
from shared.utils.errors import to_http_exception

router = APIRouter()


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """Notificaciones del usuario actual, más recientes primero"""
    return await NotificationService.list_for_user(db, current_user["user_id"], unread_only=unread_only)


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    try:
        return await NotificationService.mark_read(db, notification_id, current_user["user_id"])
    except Exception as e:
        raise to_http_exception(e, "Error actualizando notificación")
