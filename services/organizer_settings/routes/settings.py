"""Rutas de configuración del organizer"""
from typing import Dict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from services.organizer_settings.models.settings import OrganizerSettingsResponse, OrganizerSettingsUpdate
from services.organizer_settings.services.settings_service import SettingsService
from shared.auth.dependencies import get_current_organizer
from shared.database.session import get_db
from shared.utils.errors import to_http_exception

router = APIRouter()


@router.get("", response_model=OrganizerSettingsResponse)
async def get_settings(
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_organizer)
):
    return await SettingsService.get_settings(db, current_user["user_id"])


@router.put("", response_model=OrganizerSettingsResponse)
async def update_settings(
    payload: OrganizerSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_organizer)
):
    try:
        return await SettingsService.update_settings(
            db, current_user, payload.model_dump(exclude_unset=True, exclude_none=True)
        )
    except Exception as e:
        raise to_http_exception(e, "Error actualizando configuración")
