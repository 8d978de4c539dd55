"""Modelos Pydantic para órdenes"""
from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime


class OrderCreate(BaseModel):
    event_id: str
    quantity: int = Field(..., ge=1, le=5)


class TicketResponse(BaseModel):
    id: str
    order_id: str
    event_id: str
    user_id: str
    ticket_number: str
    qr_code_url: Optional[str] = None
    checked_in: bool = False
    checked_in_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class OrderEventData(BaseModel):
    id: str
    title: str
    image: Optional[str] = None
    date: Optional[datetime] = None
    category: str = "uncategorized"


class TicketIssueResult(BaseModel):
    ticket_id: str
    success: bool
    error: Optional[str] = None


class OrderResponse(BaseModel):
    id: str
    event_id: str
    user_id: str
    quantity: int
    price: float
    total_price: float
    status: str
    user_email: Optional[str] = None
    event_name: Optional[str] = None
    event_date: Optional[datetime] = None
    event_location: Optional[str] = None
    review: Optional[dict] = None
    created_at: Optional[datetime] = None
    reserved_until: Optional[datetime] = None  # solo órdenes pending
    tickets: List[TicketResponse] = []
    event_data: Optional[OrderEventData] = None
    is_upcoming: bool = False


class OrderCreateResponse(BaseModel):
    order: OrderResponse
    next_step: Literal["orders", "checkout"]
    checkout_url: Optional[str] = None
    tickets_issued: List[TicketIssueResult] = []


class OrderConfirmResponse(BaseModel):
    order: OrderResponse
    tickets_issued: List[TicketIssueResult] = []


class PaymentIntentResponse(BaseModel):
    clientSecret: str
    amount: int
    paymentIntentId: str


class ConfirmPaymentRequest(BaseModel):
    payment_intent_id: str = Field(..., min_length=1)


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)
