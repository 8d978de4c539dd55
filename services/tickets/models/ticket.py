"""Modelos Pydantic para emisión y check-in de tickets"""
from pydantic import BaseModel
from typing import Optional, Any
from datetime import datetime


class SendTicketEmailRequest(BaseModel):
    userEmail: Optional[str] = None
    eventName: Optional[str] = None
    eventDate: Optional[Any] = None
    eventLocation: Optional[str] = None
    ticketId: Optional[str] = None
    ticketNumber: Optional[str] = None
    orderId: Optional[str] = None
    userId: Optional[str] = None
    eventId: Optional[str] = None


class SendTicketEmailResult(BaseModel):
    success: bool
    qrCodeUrl: Optional[str] = None
    error: Optional[str] = None


class CheckinTicketResponse(BaseModel):
    id: str
    order_id: str
    event_id: str
    event_title: Optional[str] = None
    user_id: str
    ticket_number: str
    checked_in: bool
    checked_in_at: Optional[datetime] = None
    attendee_name: Optional[str] = None
    attendee_email: Optional[str] = None
