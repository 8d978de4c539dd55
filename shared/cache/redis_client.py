"""Cliente Redis: cache de listados y lock de inventario por evento"""
import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
import json
import uuid
from typing import Optional, Any
import asyncio
import logging

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None
redis_pool: Optional[ConnectionPool] = None


async def init_redis():
    """Crear pool y cliente Redis"""
    global redis_client, redis_pool

    from app.core.config import settings

    redis_pool = ConnectionPool.from_url(
        settings.REDIS_URL,
        password=settings.REDIS_PASSWORD,
        max_connections=settings.REDIS_MAX_CONNECTIONS,
        decode_responses=True,
        socket_connect_timeout=5,
        health_check_interval=30,
    )
    redis_client = redis.Redis(connection_pool=redis_pool)

    try:
        await redis_client.ping()
        logger.info("Redis conectado")
    except Exception as e:
        logger.error(f"Error conectando a Redis: {e}")


async def get_redis() -> redis.Redis:
    if redis_client is None:
        await init_redis()
    return redis_client


async def close_redis():
    global redis_client, redis_pool
    if redis_client:
        await redis_client.aclose()
        redis_client = None
    if redis_pool:
        await redis_pool.disconnect()
        redis_pool = None
    logger.info("Redis desconectado")


class LockNotAcquiredError(Exception):
    """No se pudo adquirir el lock dentro del timeout"""


class DistributedLock:
    """
    Lock exclusivo en Redis (SET NX + expiración).

    Se usa para serializar la verificación de inventario y la creación de
    la orden de un mismo evento, de modo que dos compras simultáneas no
    puedan reservar las mismas entradas.
    """

    # Solo quien tomó el lock puede liberarlo
    RELEASE_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    def __init__(self, key: str, timeout: float = 10, expire: int = 30):
        self.key = f"lock:{key}"
        self.timeout = timeout
        self.expire = expire
        self.token: Optional[str] = None

    async def acquire(self) -> bool:
        conn = await get_redis()
        token = uuid.uuid4().hex

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout
        while loop.time() < deadline:
            if await conn.set(self.key, token, nx=True, ex=self.expire):
                self.token = token
                return True
            await asyncio.sleep(0.1)

        logger.warning(f"Timeout esperando lock {self.key}")
        return False

    async def release(self):
        if not self.token:
            return
        conn = await get_redis()
        await conn.eval(self.RELEASE_SCRIPT, 1, self.key, self.token)
        self.token = None

    async def __aenter__(self):
        if not await self.acquire():
            raise LockNotAcquiredError(f"No se pudo adquirir lock: {self.key}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.release()


async def cache_get(key: str) -> Optional[Any]:
    """Leer JSON del cache (None si no existe)"""
    conn = await get_redis()
    value = await conn.get(key)
    if value is None:
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


async def cache_set(key: str, value: Any, expire: int = 3600):
    conn = await get_redis()
    await conn.setex(key, expire, json.dumps(value, default=str))


async def cache_delete_pattern(pattern: str) -> int:
    """Invalidar todas las claves que coincidan (ej: events:list:*)"""
    conn = await get_redis()
    keys = [key async for key in conn.scan_iter(match=pattern)]
    if keys:
        await conn.delete(*keys)
    return len(keys)
