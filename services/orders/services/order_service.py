"""Servicio de órdenes: creación, confirmación, consultas y reseñas"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from services.orders.services.checkout_state import QuantitySelector
from services.orders.services.inventory_service import InventoryService
from services.tickets.services.ticket_service import TicketService, serialize_ticket
from services.users.services.user_service import UserService
from shared.cache.redis_client import DistributedLock
from shared.database.models import Event, Order, Review, Ticket, Transaction, reservation_deadline
from shared.database.session import transaction
from shared.utils.dates import utcnow
from shared.utils.errors import ConflictError, NotFoundError
from shared.utils.qr_generator import generate_ticket_number

logger = logging.getLogger(__name__)


def is_free_event(event: Event) -> bool:
    return bool(event.is_free) or not event.price or Decimal(event.price) == 0


def serialize_order(order: Order) -> Dict[str, Any]:
    """Orden con tickets y datos del evento"""
    event = order.event
    event_data = None
    is_upcoming = False
    if event:
        event_data = {
            "id": event.id,
            "title": event.title,
            "image": (event.images or [None])[0],
            "date": event.start_date,
            "category": event.category.name if event.category else "uncategorized",
        }
        is_upcoming = bool(event.start_date and event.start_date > utcnow())

    return {
        "id": order.id,
        "event_id": order.event_id,
        "user_id": order.user_id,
        "quantity": order.quantity,
        "price": float(order.price or 0),
        "total_price": float(order.total_price or 0),
        "status": order.status,
        "user_email": order.user_email,
        "event_name": order.event_name,
        "event_date": order.event_date,
        "event_location": order.event_location,
        "review": order.review,
        "created_at": order.created_at,
        "reserved_until": order.reserved_until if order.status == "pending" else None,
        "tickets": [serialize_ticket(ticket) for ticket in order.tickets],
        "event_data": event_data,
        "is_upcoming": is_upcoming,
    }


class OrderService:
    """Servicio para el ciclo de vida de las órdenes"""

    def __init__(self, ticket_service: Optional[TicketService] = None):
        self.ticket_service = ticket_service or TicketService()

    @staticmethod
    async def get_order(db: AsyncSession, order_id: str, current_user: Optional[Dict] = None) -> Order:
        result = await db.execute(
            select(Order).where(Order.id == order_id).execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Order not found")
        if current_user and current_user["role"] != "admin" and order.user_id != current_user["user_id"]:
            raise PermissionError("No tienes permisos para esta orden")
        return order

    @staticmethod
    async def list_orders(db: AsyncSession, user_id: Optional[str] = None) -> List[Order]:
        """Órdenes (de un usuario o todas), más recientes primero"""
        stmt = select(Order)
        if user_id:
            stmt = stmt.where(Order.user_id == user_id)
        result = await db.execute(stmt.order_by(Order.created_at.desc()))
        return list(result.scalars().all())

    async def create_order(
        self,
        db: AsyncSession,
        current_user: Dict,
        event_id: str,
        quantity: int
    ) -> Tuple[Order, List[Dict]]:
        """
        Crear orden con sus tickets en una sola transacción.

        El cupo del evento se verifica bajo un lock distribuido por evento.
        Los eventos gratuitos se confirman de inmediato (sin pago).

        Returns:
            (orden, resultados de emisión de tickets si se confirmó)
        """
        selector = QuantitySelector(quantity)
        if selector.quantity != quantity or not selector.can_checkout:
            raise ValueError("La cantidad debe estar entre 1 y 5")

        event = await db.get(Event, event_id)
        if not event:
            raise NotFoundError("Evento no encontrado")
        if event.status == "Banned":
            raise ValueError("El evento no está disponible")

        user = await UserService.ensure_profile(db, current_user)
        free = is_free_event(event)
        unit_price = 0 if free else float(event.price)

        async with DistributedLock(InventoryService.lock_key(event_id), timeout=5, expire=10):
            available, message = await InventoryService.check_capacity(db, event, quantity)
            if not available:
                raise ConflictError(message)

            async with transaction(db):
                order = Order(
                    event_id=event.id,
                    user_id=user.id,
                    quantity=quantity,
                    price=unit_price,
                    total_price=selector.total_price(unit_price, free),
                    status="pending",
                    user_email=user.email or current_user.get("email"),
                    event_name=event.title,
                    event_date=event.start_date,
                    event_location=event.venue.address if event.venue else None,
                )
                db.add(order)
                await db.flush()
                db.add_all([
                    Ticket(
                        order_id=order.id,
                        event_id=event.id,
                        user_id=user.id,
                        ticket_number=generate_ticket_number(),
                    )
                    for _ in range(quantity)
                ])

        logger.info(f"Orden {order.id} creada: {quantity} tickets para evento {event_id} (free={free})")

        issuance: List[Dict] = []
        if free:
            order, issuance = await self.confirm_order(db, order.id, current_user)
        else:
            order = await self.get_order(db, order.id)
        return order, issuance

    async def confirm_order(
        self,
        db: AsyncSession,
        order_id: str,
        current_user: Optional[Dict] = None,
        payment_intent_id: Optional[str] = None
    ) -> Tuple[Order, List[Dict]]:
        """
        Confirmar orden: estado confirmed + registro de transacción (un commit),
        luego emisión de cada ticket. Una orden ya confirmada se devuelve sin cambios.
        """
        order = await self.get_order(db, order_id, current_user)
        if order.status == "confirmed":
            return order, []
        if order.status == "cancelled":
            raise ValueError("La orden fue cancelada")

        if payment_intent_id:
            used = await db.execute(
                select(Transaction.order_id).where(Transaction.payment_intent_id == payment_intent_id)
            )
            if used.scalar_one_or_none() is not None:
                raise ConflictError("El pago ya fue usado para confirmar otra orden")

        if OrderService.reservation_expired(order):
            # La reserva venció: el cupo se vuelve a verificar antes de confirmar
            async with DistributedLock(InventoryService.lock_key(order.event_id), timeout=5, expire=10):
                await OrderService._check_order_capacity(db, order)
                await self._mark_confirmed(db, order, payment_intent_id)
        else:
            await self._mark_confirmed(db, order, payment_intent_id)
        logger.info(f"Orden {order.id} confirmada (payment_intent={payment_intent_id})")

        issuance = await self.ticket_service.issue_order_tickets(db, order)
        return await self.get_order(db, order.id), issuance

    @staticmethod
    async def _mark_confirmed(db: AsyncSession, order: Order, payment_intent_id: Optional[str]) -> None:
        """Estado confirmed + transacción en un solo commit"""
        order_id = order.id
        try:
            async with transaction(db):
                order.status = "confirmed"
                db.add(Transaction(
                    order_id=order.id,
                    user_id=order.user_id,
                    total_price=order.total_price,
                    status="success",
                    payment_intent_id=payment_intent_id,
                ))
        except IntegrityError:
            logger.warning(f"PaymentIntent {payment_intent_id} ya registrado (orden {order_id})")
            raise ConflictError("El pago ya fue usado para confirmar otra orden")

    @staticmethod
    def reservation_expired(order: Order) -> bool:
        return order.status == "pending" and order.reserved_until is not None and order.reserved_until <= utcnow()

    @staticmethod
    async def _check_order_capacity(db: AsyncSession, order: Order) -> None:
        event = await db.get(Event, order.event_id)
        available, message = await InventoryService.check_capacity(
            db, event, order.quantity, exclude_order_id=order.id
        )
        if not available:
            raise ConflictError(message)

    @staticmethod
    async def renew_reservation(db: AsyncSession, order: Order) -> Order:
        """
        Renovar la reserva de una orden pending vencida si todavía hay cupo.

        Las órdenes con reserva vigente se devuelven sin cambios.
        """
        if not OrderService.reservation_expired(order):
            return order

        async with DistributedLock(InventoryService.lock_key(order.event_id), timeout=5, expire=10):
            await OrderService._check_order_capacity(db, order)
            async with transaction(db):
                order.reserved_until = reservation_deadline()
        logger.info(f"Reserva de la orden {order.id} renovada")
        return await OrderService.get_order(db, order.id)

    @staticmethod
    async def cancel_order(db: AsyncSession, order_id: str, current_user: Dict) -> Order:
        """Cancelar una orden pending y liberar sus tickets"""
        order = await OrderService.get_order(db, order_id, current_user)
        if order.status == "cancelled":
            return order
        if order.status != "pending":
            raise ValueError("Solo se pueden cancelar órdenes pendientes")

        async with transaction(db):
            order.status = "cancelled"
        logger.info(f"Orden {order.id} cancelada por {current_user['user_id']}")
        return await OrderService.get_order(db, order.id)

    @staticmethod
    def amount_in_cents(order: Order) -> int:
        return int((Decimal(order.total_price) * 100).quantize(Decimal("1")))

    @staticmethod
    async def add_review(
        db: AsyncSession,
        order_id: str,
        current_user: Dict,
        rating: int,
        comment: Optional[str] = None
    ) -> Order:
        """Reseña de una orden confirmada (documento + copia en la orden, un commit)"""
        order = await OrderService.get_order(db, order_id)
        if order.user_id != current_user["user_id"]:
            raise PermissionError("Solo el comprador puede reseñar esta orden")
        if order.status != "confirmed":
            raise ValueError("Solo se pueden reseñar órdenes confirmadas")

        user = await UserService.ensure_profile(db, current_user)
        async with transaction(db):
            review = Review(
                order_id=order.id,
                event_id=order.event_id,
                user_id=user.id,
                rating=rating,
                comment=comment,
                user_name=user.name,
                user_avatar=user.image,
            )
            db.add(review)
            await db.flush()
            order.review = {
                "id": review.id,
                "rating": rating,
                "comment": comment,
                "created_at": review.created_at.isoformat(),
            }
        return await OrderService.get_order(db, order.id)
