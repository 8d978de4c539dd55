"""Rutas de analytics"""
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from services.analytics.models.analytics import OrganizerAnalyticsResponse
from services.analytics.services.analytics_service import AnalyticsService
from shared.auth.dependencies import get_current_organizer
from shared.database.session import get_db

router = APIRouter()


@router.get("/organizer/{organizer_id}", response_model=OrganizerAnalyticsResponse)
async def get_organizer_analytics(
    organizer_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_organizer)
):
    """Dashboard del organizer (el propio o cualquiera si es admin)"""
    if current_user["role"] != "admin" and current_user["user_id"] != organizer_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No tienes permisos para ver estas estadísticas"
        )
    return await AnalyticsService.get_organizer_analytics(db, organizer_id)
