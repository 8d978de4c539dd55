"""Sesiones de base de datos"""
from contextlib import asynccontextmanager

from shared.database.connection import get_db


@asynccontextmanager
async def transaction(db):
    """Agrupar varias escrituras en un solo commit (rollback si algo falla)"""
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise


__all__ = ["get_db", "transaction"]
