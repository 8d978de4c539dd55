"""Servicio de emisión de tickets: QR + email"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from services.notifications.services.email_service import EmailService, render_ticket_email
from shared.database.models import Ticket
from shared.utils.dates import utcnow
from shared.utils.errors import NotFoundError
from shared.utils.qr_generator import build_ticket_qr_payload, generate_qr_data_url, split_data_url

logger = logging.getLogger(__name__)

QR_CONTENT_ID = "ticketQr"


class TicketEmailError(RuntimeError):
    """El proveedor de email rechazó el envío del ticket"""


class TicketService:
    """Servicio para emitir tickets (QR persistido + email al comprador)"""

    def __init__(self, email_service: Optional[EmailService] = None):
        self.email_service = email_service or EmailService()

    @staticmethod
    async def _find_ticket(
        db: AsyncSession,
        ticket_id: Optional[str],
        ticket_number: Optional[str],
        order_id: Optional[str]
    ) -> Ticket:
        if ticket_id:
            ticket = await db.get(Ticket, ticket_id)
        elif ticket_number and order_id:
            result = await db.execute(
                select(Ticket).where(Ticket.order_id == order_id, Ticket.ticket_number == ticket_number)
            )
            ticket = result.scalars().first()
        else:
            raise ValueError("ticketId es requerido")

        if not ticket:
            raise NotFoundError("Ticket not found")
        return ticket

    async def issue_ticket(
        self,
        db: AsyncSession,
        user_email: str,
        event_name: str,
        event_date: Any,
        event_location: Optional[str],
        ticket_id: Optional[str] = None,
        ticket_number: Optional[str] = None,
        order_id: Optional[str] = None
    ) -> str:
        """
        Generar el QR de un ticket, guardarlo y enviarlo por email.

        Si no se recibe ticket_number se lee del ticket guardado antes de
        construir el payload.

        Returns:
            data URL PNG del QR
        """
        ticket = await self._find_ticket(db, ticket_id, ticket_number, order_id)
        if not ticket_number:
            ticket_number = ticket.ticket_number
            logger.debug(f"ticketNumber obtenido del ticket {ticket.id}: {ticket_number}")

        payload = build_ticket_qr_payload(ticket_id or ticket.id, ticket_number)
        qr_code_url = generate_qr_data_url(payload)

        ticket.qr_code_url = qr_code_url
        ticket.updated_at = utcnow()
        await db.commit()

        _, png_bytes = split_data_url(qr_code_url)
        sent = await self.email_service.send_email(
            to_email=user_email,
            subject=f"Your Ticket for {event_name}",
            html_content=render_ticket_email(event_name, event_date, event_location),
            inline_images=[{"filename": "ticket.png", "content": png_bytes, "content_id": QR_CONTENT_ID}],
        )
        if not sent:
            raise TicketEmailError(f"No se pudo enviar el ticket a {user_email}")

        logger.info(f"Ticket {ticket.id} emitido y enviado a {user_email}")
        return qr_code_url

    async def issue_order_tickets(self, db: AsyncSession, order) -> list:
        """
        Emitir todos los tickets de una orden confirmada.

        Un fallo en un ticket se registra y no detiene los demás.
        """
        results = []
        for ticket in list(order.tickets):
            try:
                await self.issue_ticket(
                    db,
                    user_email=order.user_email,
                    event_name=order.event_name,
                    event_date=order.event_date,
                    event_location=order.event_location,
                    ticket_id=ticket.id,
                    ticket_number=ticket.ticket_number,
                    order_id=order.id,
                )
                results.append({"ticket_id": ticket.id, "success": True, "error": None})
            except Exception as e:
                logger.error(f"Error emitiendo ticket {ticket.id} de la orden {order.id}: {e}", exc_info=True)
                results.append({"ticket_id": ticket.id, "success": False, "error": str(e)})
        return results


def serialize_ticket(ticket: Ticket) -> Dict[str, Any]:
    return {
        "id": ticket.id,
        "order_id": ticket.order_id,
        "event_id": ticket.event_id,
        "user_id": ticket.user_id,
        "ticket_number": ticket.ticket_number,
        "qr_code_url": ticket.qr_code_url,
        "checked_in": bool(ticket.checked_in),
        "checked_in_at": ticket.checked_in_at,
        "created_at": ticket.created_at,
    }
