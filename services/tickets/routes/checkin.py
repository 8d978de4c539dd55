"""Rutas de check-in de tickets"""
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from services.tickets.models.ticket import CheckinTicketResponse
from services.tickets.services.checkin_service import CheckinService
from shared.auth.dependencies import get_current_organizer
from shared.database.session import get_db
from shared.utils.errors import to_http_exception
from shared.utils.rate_limiter import RATE_LIMITS, limiter

router = APIRouter()


@router.get("/event/{event_id}", response_model=List[CheckinTicketResponse])
async def get_event_tickets(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_organizer)
):
    """Tickets confirmados de un evento con datos del asistente"""
    try:
        return await CheckinService.tickets_by_event(db, event_id, current_user)
    except Exception as e:
        raise to_http_exception(e, "Error obteniendo tickets")


@router.get("/organizer/{organizer_id}", response_model=List[CheckinTicketResponse])
async def get_organizer_tickets(
    organizer_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_organizer)
):
    """Tickets confirmados de todos los eventos de un organizer"""
    if current_user["role"] != "admin" and current_user["user_id"] != organizer_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No tienes permisos para ver estos tickets"
        )
    return await CheckinService.tickets_by_organizer(db, organizer_id)


@router.post("/{ticket_id}/check-in", response_model=CheckinTicketResponse)
@limiter.limit(RATE_LIMITS["checkin"])
async def check_in_ticket(
    request: Request,
    ticket_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_organizer)
):
    """Marcar ticket como usado en la entrada"""
    try:
        return await CheckinService.check_in(db, ticket_id, current_user)
    except Exception as e:
        raise to_http_exception(e, "Error en check-in")
