"""Modelos Pydantic para sugerencias de IA"""
from pydantic import BaseModel
from typing import Optional, Union


class GenerateEventDataRequest(BaseModel):
    title: Optional[str] = None


class GenerateEventDataResult(BaseModel):
    description: str
    category: str = ""
    venue: str = ""
    categoryId: str
    venueId: str
    ticketsCount: Union[int, float]
