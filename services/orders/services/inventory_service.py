"""Servicio de inventario de tickets por evento"""
from typing import Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.database.models import Event, Order, Ticket
from shared.utils.dates import utcnow


class InventoryService:
    """Servicio para calcular y reservar el cupo de tickets de un evento"""

    @staticmethod
    def lock_key(event_id: str) -> str:
        return f"event:inventory:{event_id}"

    @staticmethod
    def holds_tickets():
        """Órdenes que ocupan cupo: confirmadas o pending con reserva vigente"""
        return or_(
            Order.status == "confirmed",
            and_(Order.status == "pending", Order.reserved_until > utcnow()),
        )

    @staticmethod
    async def sold_tickets(db: AsyncSession, event_id: str, exclude_order_id: Optional[str] = None) -> int:
        stmt = (
            select(func.count(Ticket.id))
            .join(Order, Order.id == Ticket.order_id)
            .where(Ticket.event_id == event_id, InventoryService.holds_tickets())
        )
        if exclude_order_id:
            stmt = stmt.where(Order.id != exclude_order_id)
        result = await db.execute(stmt)
        return result.scalar_one()

    @staticmethod
    async def available_tickets(db: AsyncSession, event: Event, exclude_order_id: Optional[str] = None) -> int:
        sold = await InventoryService.sold_tickets(db, event.id, exclude_order_id)
        return max((event.tickets_count or 0) - sold, 0)

    @staticmethod
    async def check_capacity(
        db: AsyncSession,
        event: Event,
        quantity: int,
        exclude_order_id: Optional[str] = None
    ) -> tuple:
        """
        Verificar si hay tickets disponibles

        Returns:
            (is_available, message)
        """
        available = await InventoryService.available_tickets(db, event, exclude_order_id)
        if available < quantity:
            return False, f"Tickets insuficientes. Disponibles: {available}, Solicitados: {quantity}"
        return True, "OK"
