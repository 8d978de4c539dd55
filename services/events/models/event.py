"""Modelos Pydantic para eventos"""
from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime


class VenueData(BaseModel):
    id: str
    name: str
    address: Optional[str] = None


class EventResponse(BaseModel):
    id: str
    title: str
    slug: str
    description: Optional[str] = None
    start_date: datetime
    end_date: Optional[datetime] = None
    venue_id: Optional[str] = None
    venue_data: Optional[VenueData] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    price: float
    is_free: bool
    tickets_count: int
    tickets_available: Optional[int] = None  # solo en el detalle
    images: List[str] = []
    organizer_id: str
    organizer_name: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    start_date: datetime
    end_date: Optional[datetime] = None
    venue_id: Optional[str] = None
    category_id: Optional[str] = None
    price: float = Field(0, ge=0)
    is_free: bool = False
    tickets_count: int = Field(..., ge=1)
    images: List[str] = []


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    venue_id: Optional[str] = None
    category_id: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    is_free: Optional[bool] = None
    tickets_count: Optional[int] = Field(None, ge=1)
    images: Optional[List[str]] = None

    def to_update_data(self) -> dict:
        """Campos enviados; null solo se acepta en los campos opcionales"""
        nullable = {"description", "end_date", "venue_id", "category_id"}
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None or key in nullable
        }


class EventStatusUpdate(BaseModel):
    status: Literal["Published", "Banned"]


class EventUpdateResult(EventResponse):
    """Evento actualizado más el resultado del aviso a compradores"""
    changes: dict = {}
    notification: Optional[dict] = None


class EventReviewResponse(BaseModel):
    id: str
    rating: int
    comment: Optional[str] = None
    user_name: Optional[str] = None
    user_avatar: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
