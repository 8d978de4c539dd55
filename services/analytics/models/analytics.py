"""Modelos Pydantic para analytics de organizers"""
from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import datetime


class TopSellingEvent(BaseModel):
    id: str
    title: Optional[str] = None
    tickets_count: int
    category: str


class UpcomingEvent(BaseModel):
    id: str
    title: str
    start_date: datetime
    end_date: Optional[datetime] = None
    category: str


class OrganizerAnalyticsResponse(BaseModel):
    revenue_by_category: Dict[str, float] = {}
    total_tickets: int = 0
    total_events: int = 0
    top_selling_events: List[TopSellingEvent] = []
    upcoming_events: List[UpcomingEvent] = []
    total_check_ins: int = 0
    attendance_rate: float = 0
    attendance_by_category: Dict[str, int] = {}
