"""Endpoint de emisión de ticket: QR + email"""
import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from services.tickets.models.ticket import SendTicketEmailRequest, SendTicketEmailResult
from services.tickets.services.ticket_service import TicketService
from shared.database.session import get_db
from shared.utils.rate_limiter import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/send-email", response_model=SendTicketEmailResult)
@limiter.limit(RATE_LIMITS["email"])
async def send_ticket_email(
    request: Request,
    payload: SendTicketEmailRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Generar el QR de un ticket, guardarlo en el ticket y enviarlo por email

    Sin ticketNumber, el número se lee del ticket guardado.
    """
    service = TicketService()
    try:
        if not payload.userEmail:
            raise ValueError("userEmail is required")
        qr_code_url = await service.issue_ticket(
            db,
            user_email=payload.userEmail,
            event_name=payload.eventName or "",
            event_date=payload.eventDate,
            event_location=payload.eventLocation,
            ticket_id=payload.ticketId,
            ticket_number=payload.ticketNumber,
            order_id=payload.orderId,
        )
    except Exception as e:
        logger.error(f"Error emitiendo ticket {payload.ticketId} (orden {payload.orderId}): {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": str(e)},
        )

    return {"success": True, "qrCodeUrl": qr_code_url}
