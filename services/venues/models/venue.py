"""Modelos Pydantic para venues"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class VenueBase(BaseModel):
    title: str = Field(..., min_length=1)
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    description: Optional[str] = None
    images: List[str] = []
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    capacity: Optional[int] = Field(None, ge=0)


class VenueCreate(VenueBase):
    pass


class VenueUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    description: Optional[str] = None
    images: Optional[List[str]] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    capacity: Optional[int] = Field(None, ge=0)

    def to_update_data(self) -> dict:
        """Campos enviados; title e images no aceptan null"""
        required = {"title", "images"}
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None or key not in required
        }


class VenueResponse(VenueBase):
    id: str
    owner_uid: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LinkedEvent(BaseModel):
    id: str
    title: str


class VenueDeleteResponse(BaseModel):
    """Resultado de eliminar un venue; deleted=False si hay eventos vinculados"""
    deleted: bool
    warning: Optional[str] = None
    linked_events: List[LinkedEvent] = []
