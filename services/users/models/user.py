"""Modelos Pydantic para usuarios"""
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, Literal
from datetime import datetime


class UserResponse(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    role: str = "attendee"
    blocked: bool = False
    image: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[int] = None
    country: Optional[str] = None
    city: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserRegister(BaseModel):
    """Alta del perfil para la identidad autenticada"""
    name: str = Field(..., min_length=3)
    email: EmailStr
    role: Literal["organizer", "attendee"] = "attendee"

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 3:
            raise ValueError("El nombre debe tener al menos 3 caracteres")
        return value


class UserUpdate(BaseModel):
    """Campos editables del perfil (organizer / attendee)"""
    name: Optional[str] = Field(None, min_length=3)
    image: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[int] = Field(None, ge=0, le=130)
    country: Optional[str] = None
    city: Optional[str] = None
    description: Optional[str] = None
