"""
Rate limiting usando slowapi + Redis
Las instancias de la API comparten contadores a través de Redis
"""
import hashlib
import logging

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from app.core.config import settings

logger = logging.getLogger(__name__)


def get_real_client_ip(request: Request) -> str:
    """
    Obtener IP real del cliente considerando proxies/load balancers.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # La primera IP es la del cliente
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return get_remote_address(request)


def get_user_identifier(request: Request) -> str:
    """Identificador para rate limiting: IP + hash del token si está autenticado"""
    ip = get_real_client_ip(request)

    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token_hash = hashlib.md5(auth_header.encode()).hexdigest()[:8]
        return f"{ip}:{token_hash}"

    return ip


storage_uri = settings.RATE_LIMIT_STORAGE_URI or settings.REDIS_URL

limiter = Limiter(
    key_func=get_user_identifier,
    storage_uri=storage_uri,
    strategy="fixed-window",
    headers_enabled=False,  # Compatibilidad con response_model de FastAPI
    enabled=settings.RATE_LIMIT_ENABLED,
)
logger.info(f"Rate limiter inicializado ({storage_uri.split('@')[-1]}, enabled={settings.RATE_LIMIT_ENABLED})")


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Handler para rate limit exceeded: JSON con Retry-After"""
    retry_after = exc.detail.split(" ")[-1] if exc.detail else "60"
    if not retry_after.isdigit():
        retry_after = "60"

    logger.warning(
        f"Rate limit exceeded - IP: {get_real_client_ip(request)}, "
        f"Path: {request.url.path}, "
        f"Retry-After: {retry_after}"
    )

    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "detail": "Demasiadas solicitudes. Por favor espera antes de intentar nuevamente.",
            "retry_after_seconds": int(retry_after),
        },
        headers={"Retry-After": retry_after},
    )


# Límites por tipo de operación
RATE_LIMITS = {
    # Órdenes y pagos: restrictivo para proteger Stripe
    "order": "10/minute",
    "payment": "20/minute",

    # Envío de emails / notificaciones masivas
    "email": "30/minute",

    # Generación con IA (costosa)
    "ai": "5/minute",

    # Uploads de imágenes
    "upload": "20/minute",

    # Check-in en puerta
    "checkin": "120/minute",
}
