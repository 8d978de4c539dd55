"""Rutas de subida de imágenes"""
import logging
from typing import Dict, List

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status

from services.uploads.models.upload import ImageUploadResult
from services.uploads.services.image_upload_service import ImageUploadError, ImageUploadService
from shared.auth.dependencies import get_current_organizer
from shared.utils.rate_limiter import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter()


def get_upload_service() -> ImageUploadService:
    return ImageUploadService()


@router.post("/images", response_model=ImageUploadResult, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["upload"])
async def upload_images(
    request: Request,
    files: List[UploadFile] = File(...),
    current_user: Dict = Depends(get_current_organizer),
    upload_service: ImageUploadService = Depends(get_upload_service)
):
    """Subir imágenes de evento o venue y devolver sus URLs"""
    pending = []
    for upload in files:
        content = await upload.read()
        try:
            ImageUploadService.validate_image(upload.filename or "image", upload.content_type, content)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        pending.append((upload.filename or "image", content))

    try:
        urls = await upload_service.upload_images(pending)
    except ImageUploadError as e:
        logger.error(f"Error subiendo imágenes de {current_user['user_id']}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return {"urls": urls}
