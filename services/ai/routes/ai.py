"""Endpoint de generación de datos de evento"""
import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from services.ai.models.ai import GenerateEventDataRequest, GenerateEventDataResult
from services.ai.services.ai_service import AIGenerationError, AIService
from shared.database.session import get_db
from shared.utils.rate_limiter import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter()


def get_ai_service() -> AIService:
    return AIService()


@router.post("/generate-event-data", response_model=GenerateEventDataResult)
@limiter.limit(RATE_LIMITS["ai"])
async def generate_event_data(
    request: Request,
    payload: GenerateEventDataRequest,
    db: AsyncSession = Depends(get_db),
    ai_service: AIService = Depends(get_ai_service)
):
    """Completar descripción, categoría, venue y aforo a partir del título"""
    if not payload.title:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Title is required"})

    try:
        return await ai_service.generate_event_data(db, payload.title)
    except AIGenerationError as e:
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(e)})
    except Exception as e:
        logger.error(f"Error generando datos de evento: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(e) or "Internal server error"}
        )
