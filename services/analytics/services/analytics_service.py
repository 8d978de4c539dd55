"""Servicio de estadísticas del dashboard de organizers"""
import logging
from collections import defaultdict
from typing import Dict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.database.models import Event, Order, Ticket
from shared.utils.dates import utcnow

logger = logging.getLogger(__name__)

OTHER_CATEGORY = "Other"


class AnalyticsService:
    """Servicio para calcular métricas de un organizer (solo órdenes confirmadas)"""

    @staticmethod
    async def get_organizer_analytics(db: AsyncSession, organizer_id: str) -> Dict:
        """
        Métricas del organizer

        Returns:
            revenue_by_category, total_tickets, total_events, top_selling_events (5),
            upcoming_events (5), total_check_ins, attendance_rate (%), attendance_by_category
        """
        events_result = await db.execute(select(Event).where(Event.organizer_id == organizer_id))
        events = list(events_result.scalars().all())
        event_category = {event.id: event.category_id or OTHER_CATEGORY for event in events}

        revenue_by_category: Dict[str, float] = defaultdict(float)
        sold_by_event: Dict[str, int] = defaultdict(int)
        total_tickets = 0

        orders_result = await db.execute(
            select(Order.event_id, Order.quantity, Order.total_price)
            .join(Event, Event.id == Order.event_id)
            .where(Event.organizer_id == organizer_id, Order.status == "confirmed")
        )
        for event_id, quantity, total_price in orders_result.all():
            category_id = event_category.get(event_id, OTHER_CATEGORY)
            revenue_by_category[category_id] += float(total_price or 0)
            sold_by_event[event_id] += quantity or 0
            total_tickets += quantity or 0

        checkins_result = await db.execute(
            select(Ticket.event_id, func.count(Ticket.id))
            .join(Order, Order.id == Ticket.order_id)
            .join(Event, Event.id == Ticket.event_id)
            .where(
                Event.organizer_id == organizer_id,
                Order.status == "confirmed",
                Ticket.checked_in.is_(True),
            )
            .group_by(Ticket.event_id)
        )
        attendance_by_category: Dict[str, int] = defaultdict(int)
        total_check_ins = 0
        for event_id, count in checkins_result.all():
            attendance_by_category[event_category.get(event_id, OTHER_CATEGORY)] += count
            total_check_ins += count

        top_selling = sorted(
            (
                {
                    "id": event.id,
                    "title": event.title,
                    "tickets_count": sold_by_event.get(event.id, 0),
                    "category": event_category[event.id],
                }
                for event in events
            ),
            key=lambda item: item["tickets_count"],
            reverse=True,
        )[:5]

        now = utcnow()
        upcoming = sorted(
            (event for event in events if event.start_date and event.start_date > now),
            key=lambda event: event.start_date,
        )[:5]

        attendance_rate = (total_check_ins / total_tickets) * 100 if total_tickets > 0 else 0

        return {
            "revenue_by_category": dict(revenue_by_category),
            "total_tickets": total_tickets,
            "total_events": len(events),
            "top_selling_events": top_selling,
            "upcoming_events": [
                {
                    "id": event.id,
                    "title": event.title or "Untitled Event",
                    "start_date": event.start_date,
                    "end_date": event.end_date,
                    "category": event_category[event.id],
                }
                for event in upcoming
            ],
            "total_check_ins": total_check_ins,
            "attendance_rate": round(attendance_rate, 1),
            "attendance_by_category": dict(attendance_by_category),
        }
