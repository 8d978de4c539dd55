"""Rutas de gestión de eventos"""
import hashlib
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from services.events.models.event import (
    EventCreate,
    EventResponse,
    EventReviewResponse,
    EventStatusUpdate,
    EventUpdate,
    EventUpdateResult,
)
from services.events.services.event_service import (
    EventService,
    invalidate_events_cache,
    serialize_event,
)
from services.orders.services.inventory_service import InventoryService
from services.users.services.user_service import UserService
from shared.auth.dependencies import get_current_admin, get_current_organizer
from shared.cache.redis_client import cache_get, cache_set
from shared.database.session import get_db
from shared.utils.errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter()


def _build_cache_key(
    category: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0
) -> str:
    """Construir clave de cache basada en los filtros"""
    params_str = f"{category or ''}_{status or ''}_{limit}_{offset}"
    params_hash = hashlib.md5(params_str.encode()).hexdigest()
    return f"events:response:{params_hash}"


@router.get("", response_model=List[EventResponse])
async def get_events(
    category: Optional[str] = Query(None, description="ID de categoría"),
    search: Optional[str] = Query(None, description="Búsqueda por título o descripción"),
    status: Optional[str] = Query(None, description="Published / Banned"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db)
):
    """
    Listar eventos (más recientes primero)

    Cache: resultados en Redis por EVENTS_CACHE_TTL segundos cuando no hay búsqueda
    """
    use_cache = not search
    cache_key = _build_cache_key(category, status, limit, offset)

    if use_cache:
        try:
            cached_data = await cache_get(cache_key)
            if cached_data is not None:
                return cached_data
        except Exception as e:
            logger.warning(f"Cache de eventos no disponible: {e}")

    events = await EventService.get_events(
        db, category=category, search=search, status=status, limit=limit, offset=offset
    )
    data = [serialize_event(event) for event in events]

    if use_cache:
        try:
            await cache_set(cache_key, data, expire=settings.EVENTS_CACHE_TTL)
        except Exception as e:
            logger.warning(f"No se pudo guardar cache de eventos: {e}")

    return data


@router.get("/organizer/{organizer_id}", response_model=List[EventResponse])
async def get_events_by_organizer(organizer_id: str, db: AsyncSession = Depends(get_db)):
    """Eventos de un organizer"""
    events = await EventService.get_events_by_organizer(db, organizer_id)
    return [serialize_event(event) for event in events]


@router.get("/venue/{venue_id}", response_model=List[EventResponse])
async def get_events_by_venue(venue_id: str, db: AsyncSession = Depends(get_db)):
    """Eventos de un venue, ordenados por fecha de inicio"""
    events = await EventService.get_events_by_venue(db, venue_id)
    return [serialize_event(event) for event in events]


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: str, db: AsyncSession = Depends(get_db)):
    """Detalle de evento con datos del venue y tickets disponibles"""
    try:
        event = await EventService.get_event_by_id(db, event_id)
    except Exception as e:
        raise to_http_exception(e, "Error obteniendo evento")

    data = serialize_event(event)
    data["tickets_available"] = await InventoryService.available_tickets(db, event)
    return data


@router.get("/{event_id}/reviews", response_model=List[EventReviewResponse])
async def get_event_reviews(
    event_id: str,
    limit: int = Query(5, ge=1, le=50),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db)
):
    """Reseñas del evento paginadas (5 por página por defecto)"""
    try:
        return await EventService.get_reviews(db, event_id, limit=limit, offset=offset)
    except Exception as e:
        raise to_http_exception(e, "Error obteniendo reseñas")


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_organizer)
):
    """Crear evento (organizer no bloqueado)"""
    try:
        await UserService.assert_can_publish(db, current_user)
        event = await EventService.create_event(db, payload.model_dump(), current_user["user_id"])
    except Exception as e:
        raise to_http_exception(e, "Error creando evento")

    await invalidate_events_cache()
    return serialize_event(event)


@router.put("/{event_id}", response_model=EventUpdateResult)
async def update_event(
    event_id: str,
    payload: EventUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_organizer)
):
    """
    Actualizar evento

    Si cambian campos relevantes se avisa a los compradores (email + in-app).
    Con cambio de fecha se incluyen también las órdenes no confirmadas.
    """
    try:
        event, changes = await EventService.update_event(db, event_id, payload.to_update_data(), current_user)
    except Exception as e:
        raise to_http_exception(e, "Error actualizando evento")

    await invalidate_events_cache()
    body = serialize_event(event)
    notification = await EventService.notify_changes(db, event, changes)

    return {**body, "changes": changes, "notification": notification}


@router.patch("/{event_id}/status", response_model=EventResponse)
async def update_event_status(
    event_id: str,
    payload: EventStatusUpdate,
    db: AsyncSession = Depends(get_db),
    admin: Dict = Depends(get_current_admin)
):
    """Publicar o banear evento (solo admin); notifica al organizer"""
    try:
        event = await EventService.update_status(db, event_id, payload.status)
    except Exception as e:
        raise to_http_exception(e, "Error actualizando estado del evento")

    await invalidate_events_cache()
    return serialize_event(event)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_organizer)
):
    try:
        await EventService.delete_event(db, event_id, current_user)
    except Exception as e:
        raise to_http_exception(e, "Error eliminando evento")

    await invalidate_events_cache()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
