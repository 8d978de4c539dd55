"""Conexión a la base de datos (PostgreSQL en producción, SQLite en tests)"""
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from typing import AsyncGenerator
import logging

logger = logging.getLogger(__name__)

Base = declarative_base()

engine = None
async_session_maker = None

_ASYNC_DRIVERS = {
    "postgres://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
    "postgresql+psycopg://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


def to_async_url(database_url: str) -> str:
    """Traducir DATABASE_URL al driver async (asyncpg / aiosqlite)"""
    if database_url.startswith("postgres") and "?" in database_url:
        # sslmode y similares no los entiende asyncpg
        database_url = database_url.split("?")[0]

    for prefix, driver in _ASYNC_DRIVERS.items():
        if database_url.startswith(prefix):
            return driver + database_url[len(prefix):]
    return database_url


def _safe_url(database_url: str) -> str:
    return database_url.split("@")[1] if "@" in database_url else database_url


async def init_db():
    """Crear engine y session factory; crea tablas si DB_AUTO_CREATE"""
    global engine, async_session_maker

    if engine is not None:
        logger.warning("Engine de base de datos ya inicializado")
        return

    from app.core.config import settings

    database_url = to_async_url(settings.DATABASE_URL)
    logger.info(f"Conectando a base de datos: {_safe_url(database_url)}")

    pool_config = {}
    if database_url.startswith("postgresql"):
        pool_config = {
            "pool_pre_ping": True,
            "pool_recycle": 300,
            "pool_size": settings.DATABASE_POOL_SIZE,
            "max_overflow": settings.DATABASE_MAX_OVERFLOW,
        }

    engine = create_async_engine(database_url, echo=settings.DATABASE_ECHO, **pool_config)
    async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    if settings.DB_AUTO_CREATE:
        await create_tables()

    logger.info("Base de datos inicializada")


async def create_tables():
    """Crear las tablas que falten a partir de los modelos"""
    import shared.database.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tablas verificadas")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency: una sesión por request"""
    if async_session_maker is None:
        logger.error("Base de datos no inicializada, falta init_db()")
        raise RuntimeError("Database not initialized")

    async with async_session_maker() as session:
        yield session


async def close_db():
    """Cerrar conexiones a la base de datos"""
    global engine, async_session_maker
    if engine:
        await engine.dispose()
        engine = None
        async_session_maker = None
        logger.info("Conexiones a base de datos cerradas")
