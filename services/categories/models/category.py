"""Modelos Pydantic para categorías"""
from pydantic import BaseModel, Field
from typing import Optional


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=80)
    image: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=80)
    image: Optional[str] = None


class CategoryResponse(BaseModel):
    id: str
    name: str
    image: Optional[str] = None
    events_count: int = 0
