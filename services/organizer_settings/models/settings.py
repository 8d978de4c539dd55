"""Modelos Pydantic para la configuración de organizers"""
from pydantic import BaseModel, Field
from typing import Optional, Literal


class OrganizerSettingsResponse(BaseModel):
    default_ticket_quantity: int = 100
    default_ticket_price: float = 25
    default_visibility: str = "public"
    email_notifications: bool = True
    in_app_alerts: bool = False
    account_id: Optional[str] = None
    account_active: bool = False
    facebook_url: Optional[str] = None
    instagram_url: Optional[str] = None
    twitter_url: Optional[str] = None
    website_url: Optional[str] = None


class OrganizerSettingsUpdate(BaseModel):
    default_ticket_quantity: Optional[int] = Field(None, ge=1)
    default_ticket_price: Optional[float] = Field(None, ge=0)
    default_visibility: Optional[Literal["public", "private"]] = None
    email_notifications: Optional[bool] = None
    in_app_alerts: Optional[bool] = None
    facebook_url: Optional[str] = None
    instagram_url: Optional[str] = None
    twitter_url: Optional[str] = None
    website_url: Optional[str] = None
