"""Modelos Pydantic para notificaciones"""
from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime


class FieldChange(BaseModel):
    before: Optional[Any] = None
    after: Optional[Any] = None


class EventSnapshot(BaseModel):
    title: Optional[str] = None
    startDate: Optional[Any] = None
    endDate: Optional[Any] = None
    venue: Optional[str] = None


class EventUpdateNotificationRequest(BaseModel):
    eventId: Optional[str] = None
    changes: Optional[Dict[str, FieldChange]] = None
    event: Optional[EventSnapshot] = None
    onlyConfirmed: bool = True


class EventUpdateNotificationResult(BaseModel):
    success: bool
    notified: int = 0
    inAppCreated: int = 0


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    event_id: Optional[str] = None
    type: str
    title: str
    message: Optional[str] = None
    changes: Optional[Dict[str, Any]] = None
    link: Optional[str] = None
    related_id: Optional[str] = None
    read: bool
    created_at: datetime

    class Config:
        from_attributes = True
