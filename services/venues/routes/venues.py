"""Rutas de venues"""
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from services.users.services.user_service import UserService
from services.venues.models.venue import (
    VenueCreate,
    VenueDeleteResponse,
    VenueResponse,
    VenueUpdate,
)
from services.venues.services.venue_service import VenueService
from services.events.services.event_service import invalidate_events_cache
from shared.auth.dependencies import get_current_organizer
from shared.database.session import get_db
from shared.utils.errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[VenueResponse])
async def list_venues(
    owner_uid: Optional[str] = Query(None, description="Venues de un organizer"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db)
):
    """Listar venues (público)"""
    return await VenueService.list_venues(db, owner_uid=owner_uid, limit=limit, offset=offset)


@router.get("/{venue_id}", response_model=VenueResponse)
async def get_venue(venue_id: str, db: AsyncSession = Depends(get_db)):
    try:
        return await VenueService.get_venue(db, venue_id)
    except Exception as e:
        raise to_http_exception(e, "Error obteniendo venue")


@router.post("", response_model=VenueResponse, status_code=status.HTTP_201_CREATED)
async def create_venue(
    payload: VenueCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_organizer)
):
    """Crear venue (organizer no bloqueado)"""
    try:
        await UserService.assert_can_publish(db, current_user)
        return await VenueService.create_venue(db, payload.model_dump(), current_user["user_id"])
    except Exception as e:
        raise to_http_exception(e, "Error creando venue")


@router.put("/{venue_id}", response_model=VenueResponse)
async def update_venue(
    venue_id: str,
    payload: VenueUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_organizer)
):
    try:
        venue = await VenueService.update_venue(
            db, venue_id, payload.to_update_data(), current_user
        )
    except Exception as e:
        raise to_http_exception(e, "Error actualizando venue")

    await invalidate_events_cache()
    return venue


@router.delete("/{venue_id}", response_model=VenueDeleteResponse)
async def delete_venue(
    venue_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_organizer)
):
    """
    Eliminar venue

    Responde 409 con la advertencia y los eventos vinculados si el venue está en uso.
    """
    try:
        result = await VenueService.delete_venue(db, venue_id, current_user)
    except Exception as e:
        raise to_http_exception(e, "Error eliminando venue")

    if not result["deleted"]:
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=result)
    return result
