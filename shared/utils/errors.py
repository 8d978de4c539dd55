"""Errores de dominio y su traducción a HTTPException"""
import logging

from fastapi import HTTPException, status

from shared.cache.redis_client import LockNotAcquiredError

logger = logging.getLogger(__name__)


class NotFoundError(LookupError):
    """Entidad no encontrada"""


class ConflictError(ValueError):
    """La operación choca con el estado actual (duplicados, dependencias, stock)"""


def to_http_exception(error: Exception, context: str) -> HTTPException:
    """
    Mapear excepciones de los servicios a HTTPException.

    NotFoundError -> 404, PermissionError -> 403, ConflictError -> 409,
    ValueError -> 400, lock ocupado -> 503, resto -> 500.
    """
    if isinstance(error, HTTPException):
        return error
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, PermissionError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    if isinstance(error, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    if isinstance(error, ValueError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, LockNotAcquiredError):
        logger.warning(f"{context}: {error}")
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Recurso ocupado, intenta nuevamente"
        )

    logger.error(f"{context}: {error}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"{context}: {str(error)}"
    )
