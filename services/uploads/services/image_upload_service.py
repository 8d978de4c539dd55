"""Subida de imágenes de eventos y venues a imgbb"""
import asyncio
import base64
import logging
from typing import List, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}
MAX_IMAGE_BYTES = 32 * 1024 * 1024


class ImageUploadError(Exception):
    """imgbb rechazó la imagen o no respondió"""


class ImageUploadService:
    """Cliente de la API de imgbb"""

    def __init__(self, api_key: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key if api_key is not None else settings.IMGBB_API_KEY
        self.upload_url = settings.IMGBB_UPLOAD_URL
        self._transport = transport

    @staticmethod
    def validate_image(filename: str, content_type: Optional[str], content: bytes) -> None:
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise ValueError(f"Tipo de archivo no permitido: {filename}")
        if not content:
            raise ValueError(f"Archivo vacío: {filename}")
        if len(content) > MAX_IMAGE_BYTES:
            raise ValueError(f"Archivo demasiado grande: {filename}")

    async def upload_image(self, content: bytes, filename: str = "image") -> str:
        """
        Subir una imagen

        Returns:
            URL pública de la imagen
        """
        if not self.api_key:
            raise ImageUploadError("imgbb API key is not configured")

        logger.info(f"Subiendo imagen {filename} ({len(content) / 1024:.2f} KB)")
        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
                response = await client.post(
                    self.upload_url,
                    params={"key": self.api_key},
                    data={"image": base64.b64encode(content).decode("ascii"), "name": filename},
                )
        except httpx.TimeoutException as e:
            raise ImageUploadError(f"Timeout al comunicarse con imgbb: {e}")
        except httpx.RequestError as e:
            raise ImageUploadError(f"Error de conexión con imgbb: {e}")

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.status_code != 200 or not payload.get("success"):
            message = (payload.get("error") or {}).get("message") or "Failed to upload image to imgbb"
            logger.error(f"imgbb rechazó {filename} - Status: {response.status_code}, Mensaje: {message}")
            raise ImageUploadError(message)

        url = payload["data"]["url"]
        logger.info(f"Imagen subida: {url}")
        return url

    async def upload_images(self, files: List[tuple]) -> List[str]:
        """Subir varias imágenes [(filename, content)] en paralelo, en orden"""
        return list(await asyncio.gather(
            *(self.upload_image(content, filename) for filename, content in files)
        ))
