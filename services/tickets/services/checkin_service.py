"""Servicio de check-in de tickets"""
import logging
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.database.models import Event, Order, Ticket
from shared.utils.dates import utcnow
from shared.utils.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


def _with_attendee(ticket: Ticket, event_title: str = None) -> Dict:
    user = ticket.user
    return {
        "id": ticket.id,
        "order_id": ticket.order_id,
        "event_id": ticket.event_id,
        "event_title": event_title,
        "user_id": ticket.user_id,
        "ticket_number": ticket.ticket_number,
        "checked_in": bool(ticket.checked_in),
        "checked_in_at": ticket.checked_in_at,
        "attendee_name": user.name if user else None,
        "attendee_email": user.email if user else None,
    }


class CheckinService:
    """Servicio para control de acceso en puerta"""

    @staticmethod
    async def _assert_event_access(db: AsyncSession, event_id: str, current_user: Dict) -> Event:
        event = await db.get(Event, event_id)
        if not event:
            raise NotFoundError("Evento no encontrado")
        if current_user["role"] != "admin" and event.organizer_id != current_user["user_id"]:
            raise PermissionError("No tienes permisos sobre este evento")
        return event

    @staticmethod
    async def tickets_by_event(db: AsyncSession, event_id: str, current_user: Dict) -> List[Dict]:
        """Tickets de órdenes confirmadas de un evento, con nombre y email del asistente"""
        event = await CheckinService._assert_event_access(db, event_id, current_user)
        result = await db.execute(
            select(Ticket)
            .join(Order, Order.id == Ticket.order_id)
            .where(Ticket.event_id == event_id, Order.status == "confirmed")
            .order_by(Ticket.created_at.asc())
        )
        return [_with_attendee(ticket, event.title) for ticket in result.scalars().all()]

    @staticmethod
    async def tickets_by_organizer(db: AsyncSession, organizer_id: str) -> List[Dict]:
        """Tickets confirmados de todos los eventos de un organizer"""
        result = await db.execute(
            select(Ticket, Event.title)
            .join(Event, Event.id == Ticket.event_id)
            .join(Order, Order.id == Ticket.order_id)
            .where(Event.organizer_id == organizer_id, Order.status == "confirmed")
            .order_by(Ticket.created_at.asc())
        )
        return [_with_attendee(ticket, title) for ticket, title in result.all()]

    @staticmethod
    async def check_in(db: AsyncSession, ticket_id: str, current_user: Dict) -> Dict:
        ticket = await db.get(Ticket, ticket_id)
        if not ticket:
            raise NotFoundError("Ticket not found")
        event = await CheckinService._assert_event_access(db, ticket.event_id, current_user)

        order = await db.get(Order, ticket.order_id)
        if not order or order.status != "confirmed":
            raise ValueError("El ticket pertenece a una orden no confirmada")
        if ticket.checked_in:
            raise ConflictError(f"Ticket ya utilizado ({ticket.checked_in_at.isoformat() if ticket.checked_in_at else ''})")

        ticket.checked_in = True
        ticket.checked_in_at = utcnow()
        await db.commit()
        logger.info(f"Check-in ticket {ticket_id} (evento {ticket.event_id})")
        return _with_attendee(ticket, event.title)
