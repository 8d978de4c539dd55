"""Servicio de gestión de eventos"""
import logging
from decimal import Decimal
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from services.notifications.services.notification_service import NotificationService
from shared.cache.redis_client import cache_delete_pattern
from shared.database.models import Category, Event, Notification, Order, Report, Review, Ticket, Venue
from shared.utils.dates import to_iso, to_naive_utc
from shared.utils.errors import ConflictError, NotFoundError
from shared.utils.slug import slugify_title

logger = logging.getLogger(__name__)

EVENTS_CACHE_PATTERN = "events:response:*"

EVENT_STATUSES = ("Published", "Banned")

# Campos cuyo cambio se notifica a los compradores (clave -> atributo del modelo)
TRACKED_FIELDS = {
    "title": "title",
    "description": "description",
    "start_date": "start_date",
    "end_date": "end_date",
    "venue": "venue_id",
    "category": "category_id",
    "price": "price",
    "is_free": "is_free",
    "tickets_count": "tickets_count",
}


async def invalidate_events_cache() -> None:
    """Invalidar listados de eventos cacheados; un fallo de Redis no bloquea la escritura"""
    try:
        deleted = await cache_delete_pattern(EVENTS_CACHE_PATTERN)
        logger.debug(f"Cache de eventos invalidado ({deleted} claves)")
    except Exception as e:
        logger.warning(f"No se pudo invalidar el cache de eventos: {e}")


def _comparable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return to_naive_utc(value)
    return value


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return to_iso(value)
    return value


def serialize_event(event: Event) -> Dict[str, Any]:
    """Serializar evento a dict JSON (respuestas y cache)"""
    venue = event.venue
    return {
        "id": event.id,
        "title": event.title,
        "slug": slugify_title(event.title),
        "description": event.description,
        "start_date": to_iso(event.start_date),
        "end_date": to_iso(event.end_date),
        "venue_id": event.venue_id,
        "venue_data": {"id": venue.id, "name": venue.title, "address": venue.address} if venue else None,
        "category_id": event.category_id,
        "category_name": event.category.name if event.category else None,
        "price": float(event.price or 0),
        "is_free": bool(event.is_free),
        "tickets_count": event.tickets_count,
        "images": list(event.images or []),
        "organizer_id": event.organizer_id,
        "organizer_name": event.organizer.name if event.organizer else None,
        "status": event.status,
        "created_at": to_iso(event.created_at),
        "updated_at": to_iso(event.updated_at),
    }


class EventService:
    """Servicio para gestionar eventos"""

    @staticmethod
    async def get_events(
        db: AsyncSession,
        category: Optional[str] = None,
        search: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[Event]:
        """Listar eventos, más recientes primero"""
        stmt = select(Event)

        if category:
            stmt = stmt.where(Event.category_id == category)
        if status:
            stmt = stmt.where(Event.status == status)
        if search:
            stmt = stmt.where(
                or_(
                    Event.title.ilike(f"%{search}%"),
                    Event.description.ilike(f"%{search}%")
                )
            )

        stmt = stmt.order_by(Event.created_at.desc()).limit(limit).offset(offset)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_event_by_id(db: AsyncSession, event_id: str) -> Event:
        # populate_existing recarga relaciones de instancias ya presentes en la sesión
        result = await db.execute(
            select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
        )
        event = result.scalar_one_or_none()
        if not event:
            raise NotFoundError("Evento no encontrado")
        return event

    @staticmethod
    async def get_events_by_organizer(db: AsyncSession, organizer_id: str) -> List[Event]:
        result = await db.execute(
            select(Event).where(Event.organizer_id == organizer_id).order_by(Event.created_at.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_events_by_venue(db: AsyncSession, venue_id: str) -> List[Event]:
        result = await db.execute(
            select(Event).where(Event.venue_id == venue_id).order_by(Event.start_date.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_reviews(db: AsyncSession, event_id: str, limit: int = 5, offset: int = 0) -> List[Review]:
        """Reseñas de un evento, más recientes primero"""
        await EventService.get_event_by_id(db, event_id)
        result = await db.execute(
            select(Review)
            .where(Review.event_id == event_id)
            .order_by(Review.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    @staticmethod
    async def _validate_references(db: AsyncSession, data: Dict) -> None:
        if data.get("venue_id") and not await db.get(Venue, data["venue_id"]):
            raise ValueError("Venue no encontrado")
        if data.get("category_id") and not await db.get(Category, data["category_id"]):
            raise ValueError("Categoría no encontrada")

    @staticmethod
    def _normalize(data: Dict) -> Dict:
        """Fechas a UTC naive y precio 0 para eventos gratuitos"""
        for field in ("start_date", "end_date"):
            if data.get(field) is not None:
                data[field] = to_naive_utc(data[field])
        if data.get("is_free"):
            data["price"] = 0
        return data

    @staticmethod
    def _check_dates(start_date: Optional[datetime], end_date: Optional[datetime]) -> None:
        if start_date and end_date and end_date < start_date:
            raise ValueError("La fecha de término debe ser posterior a la fecha de inicio")

    @staticmethod
    def _check_owner(event: Event, current_user: Dict) -> None:
        if current_user["role"] != "admin" and event.organizer_id != current_user["user_id"]:
            raise PermissionError("No tienes permisos para modificar este evento")

    @staticmethod
    async def create_event(db: AsyncSession, data: Dict, organizer_id: str) -> Event:
        """Crear evento publicado"""
        data = EventService._normalize(dict(data))
        EventService._check_dates(data.get("start_date"), data.get("end_date"))
        await EventService._validate_references(db, data)

        event = Event(organizer_id=organizer_id, status="Published", **data)
        db.add(event)
        await db.commit()
        logger.info(f"Evento creado: {event.title} ({event.id}) por {organizer_id}")
        return await EventService.get_event_by_id(db, event.id)

    @staticmethod
    def diff_tracked_fields(event: Event, data: Dict) -> Dict[str, Dict[str, Any]]:
        """Cambios {campo: {before, after}} de los campos seguidos"""
        changes = {}
        for key, attr in TRACKED_FIELDS.items():
            if attr not in data:
                continue
            before = getattr(event, attr)
            after = data[attr]
            if _comparable(before) != _comparable(after):
                changes[key] = {"before": _jsonable(before), "after": _jsonable(after)}
        return changes

    @staticmethod
    async def update_event(
        db: AsyncSession,
        event_id: str,
        data: Dict,
        current_user: Dict
    ) -> Tuple[Event, Dict[str, Dict[str, Any]]]:
        """
        Actualizar evento

        Returns:
            (evento actualizado, cambios de los campos seguidos)
        """
        event = await EventService.get_event_by_id(db, event_id)
        EventService._check_owner(event, current_user)

        data = EventService._normalize(dict(data))
        if "price" in data and data.get("is_free", event.is_free):
            data["price"] = 0
        EventService._check_dates(
            data.get("start_date", event.start_date), data.get("end_date", event.end_date)
        )
        await EventService._validate_references(db, data)

        changes = EventService.diff_tracked_fields(event, data)
        for field, value in data.items():
            setattr(event, field, value)
        await db.commit()

        return await EventService.get_event_by_id(db, event_id), changes

    @staticmethod
    async def notify_changes(db: AsyncSession, event: Event, changes: Dict[str, Dict[str, Any]]) -> Optional[Dict]:
        """
        Notificar a los compradores los cambios de un evento.

        Si cambió alguna fecha se avisa también a órdenes no confirmadas.
        Un fallo al notificar nunca hace fallar la actualización.
        """
        if not changes:
            return None

        date_changed = "start_date" in changes or "end_date" in changes
        try:
            return await NotificationService().notify_event_update(
                db,
                event.id,
                changes=changes,
                event={
                    "title": event.title,
                    "startDate": to_iso(event.start_date),
                    "endDate": to_iso(event.end_date),
                    "venue": event.venue_id,
                },
                only_confirmed=not date_changed,
            )
        except Exception as e:
            logger.error(f"Error notificando cambios del evento {event.id}: {e}", exc_info=True)
            return None

    @staticmethod
    async def update_status(db: AsyncSession, event_id: str, status: str) -> Event:
        """Publicar / banear evento y avisar al organizer"""
        if status not in EVENT_STATUSES:
            raise ValueError(f"Estado inválido: {status}")

        event = await EventService.get_event_by_id(db, event_id)
        event.status = status

        published = status == "Published"
        await NotificationService.create_notification(
            db,
            user_id=event.organizer_id,
            type="event_published" if published else "event_banned",
            title="Event Published" if published else "Event Banned",
            message=(
                f'Your event "{event.title}" has been published and is now live.'
                if published
                else f'Your event "{event.title}" has been banned. Please contact support for more information.'
            ),
            link=f"/events/{event.id}",
            related_id=event.id,
            event_id=event.id,
            commit=False,
        )
        await db.commit()
        logger.info(f"Evento {event_id} -> {status}")
        return await EventService.get_event_by_id(db, event_id)

    @staticmethod
    async def delete_event(db: AsyncSession, event_id: str, current_user: Dict) -> None:
        """Eliminar evento; no se permite si tiene órdenes confirmadas"""
        event = await EventService.get_event_by_id(db, event_id)
        EventService._check_owner(event, current_user)

        result = await db.execute(
            select(func.count(Order.id)).where(Order.event_id == event_id, Order.status == "confirmed")
        )
        if result.scalar_one() > 0:
            raise ConflictError("No se puede eliminar un evento con órdenes confirmadas")

        order_ids = select(Order.id).where(Order.event_id == event_id)
        await db.execute(delete(Ticket).where(Ticket.order_id.in_(order_ids)))
        await db.execute(delete(Review).where(Review.event_id == event_id))
        await db.execute(delete(Order).where(Order.event_id == event_id))
        await db.execute(delete(Report).where(Report.event_id == event_id))
        await db.execute(delete(Notification).where(Notification.event_id == event_id))
        await db.delete(event)
        await db.commit()
        logger.info(f"Evento eliminado: {event_id}")
