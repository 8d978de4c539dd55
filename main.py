"""API principal de BookTik - Punto de entrada de la aplicación"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
import os
import logging
from contextlib import asynccontextmanager

from shared.auth.route_guard import RouteGuardMiddleware
from shared.database.connection import init_db, close_db
from shared.cache.redis_client import init_redis, close_redis
from shared.utils.rate_limiter import limiter, rate_limit_exceeded_handler

# Configurar logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle events de la aplicación"""
    logger.info("Iniciando aplicación...")
    await init_db()
    await init_redis()
    logger.info("Aplicación iniciada")
    yield
    logger.info("Cerrando aplicación...")
    await close_db()
    await close_redis()
    logger.info("Aplicación cerrada")


app = FastAPI(
    title="BookTik API",
    description="Backend API para publicación de eventos y venta de tickets",
    version="1.0.0",
    lifespan=lifespan
)

# CORS antes de rate limiting
default_origins = "http://localhost:3000,http://127.0.0.1:3000"
cors_origins_str = os.getenv("CORS_ORIGINS", default_origins)

if os.getenv("APP_ENV", "development") == "development":
    logger.info("Modo desarrollo: CORS configurado para permitir todos los orígenes")
    allow_origins = ["*"]
    allow_credentials = False  # No se puede usar credentials con allow_origins=["*"]
else:
    allow_origins = [origin.strip() for origin in cors_origins_str.split(",") if origin.strip()]
    allow_credentials = True
    logger.info(f"CORS origins configurados: {allow_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=allow_credentials,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH", "HEAD"],
    allow_headers=["*"],
    max_age=3600,
)
app.add_middleware(RouteGuardMiddleware)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Routers de cada servicio
from services.payments.routes.payments import router as payments_router
from services.tickets.routes.send_email import router as send_email_router
from services.notifications.routes.event_updates import router as event_updates_router
from services.ai.routes.ai import router as ai_router
from services.events.routes.events import router as events_router
from services.venues.routes.venues import router as venues_router
from services.categories.routes.categories import router as categories_router
from services.users.routes.users import router as users_router
from services.orders.routes.orders import router as orders_router
from services.tickets.routes.checkin import router as checkin_router
from services.notifications.routes.notifications import router as notifications_router
from services.reports.routes.reports import router as reports_router
from services.analytics.routes.analytics import router as analytics_router
from services.organizer_settings.routes.settings import router as settings_router
from services.uploads.routes.uploads import router as uploads_router

# Endpoints públicos consumidos directamente por el frontend
app.include_router(payments_router, prefix="/api", tags=["payments"])
app.include_router(send_email_router, prefix="/api", tags=["tickets"])
app.include_router(event_updates_router, prefix="/api", tags=["notifications"])
app.include_router(ai_router, prefix="/api", tags=["ai"])

app.include_router(events_router, prefix="/api/v1/events", tags=["events"])
app.include_router(venues_router, prefix="/api/v1/venues", tags=["venues"])
app.include_router(categories_router, prefix="/api/v1/categories", tags=["categories"])
app.include_router(users_router, prefix="/api/v1/users", tags=["users"])
app.include_router(orders_router, prefix="/api/v1/orders", tags=["orders"])
app.include_router(checkin_router, prefix="/api/v1/tickets", tags=["tickets"])
app.include_router(notifications_router, prefix="/api/v1/notifications", tags=["notifications"])
app.include_router(reports_router, prefix="/api/v1/reports", tags=["reports"])
app.include_router(analytics_router, prefix="/api/v1/analytics", tags=["analytics"])
app.include_router(settings_router, prefix="/api/v1/organizers/settings", tags=["settings"])
app.include_router(uploads_router, prefix="/api/v1/uploads", tags=["uploads"])


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {"status": "ok", "service": "booktik-api"}


@app.get("/ready")
async def ready():
    """Ready check endpoint - verifica conexiones"""
    try:
        from sqlalchemy import text
        from shared.database.connection import async_session_maker
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))

        from shared.cache.redis_client import get_redis
        redis = await get_redis()
        await redis.ping()

        return {"status": "ready", "database": "connected", "redis": "connected"}
    except Exception as e:
        logger.error(f"Ready check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "not ready", "error": str(e)})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=os.getenv("APP_DEBUG", "False").lower() == "true"
    )
