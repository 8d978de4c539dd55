"""Modelos Pydantic para reportes de eventos"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ReportCreate(BaseModel):
    event_id: str
    type: str = Field(..., min_length=1, max_length=50)  # ej: spam, fraud, inappropriate
    message: Optional[str] = Field(None, max_length=2000)


class ReportResponse(BaseModel):
    id: str
    event_id: str
    organizer_id: Optional[str] = None
    reporter_id: Optional[str] = None
    type: str
    message: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
