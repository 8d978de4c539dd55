"""Modelos Pydantic para subida de imágenes"""
from pydantic import BaseModel
from typing import List


class ImageUploadResult(BaseModel):
    urls: List[str]
