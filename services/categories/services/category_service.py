"""Servicio de categorías"""
import logging
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.database.models import Category, Event
from shared.utils.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


class CategoryService:
    """Servicio para gestionar categorías de eventos"""

    @staticmethod
    async def list_categories(db: AsyncSession) -> List[Dict]:
        """Categorías con la cantidad de eventos de cada una"""
        counts = (
            select(Event.category_id, func.count(Event.id).label("events_count"))
            .group_by(Event.category_id)
            .subquery()
        )
        stmt = (
            select(Category, func.coalesce(counts.c.events_count, 0))
            .outerjoin(counts, counts.c.category_id == Category.id)
            .order_by(Category.name.asc())
        )
        result = await db.execute(stmt)
        return [
            {"id": category.id, "name": category.name, "image": category.image, "events_count": count}
            for category, count in result.all()
        ]

    @staticmethod
    async def get_category(db: AsyncSession, category_id: str) -> Category:
        category = await db.get(Category, category_id)
        if not category:
            raise NotFoundError("Categoría no encontrada")
        return category

    @staticmethod
    async def name_exists(db: AsyncSession, name: str, exclude_id: Optional[str] = None) -> bool:
        """Verificar si ya existe una categoría con ese nombre (sin espacios extremos)"""
        stmt = select(Category.id).where(Category.name == name.strip())
        if exclude_id:
            stmt = stmt.where(Category.id != exclude_id)
        result = await db.execute(stmt.limit(1))
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def create_category(db: AsyncSession, data: Dict) -> Category:
        name = data["name"].strip()
        if not name:
            raise ValueError("El nombre de la categoría es requerido")
        if await CategoryService.name_exists(db, name):
            raise ConflictError("A category with this name already exists")

        category = Category(name=name, image=data.get("image"))
        db.add(category)
        await db.commit()
        await db.refresh(category)
        logger.info(f"Categoría creada: {category.name} ({category.id})")
        return category

    @staticmethod
    async def update_category(db: AsyncSession, category_id: str, data: Dict) -> Category:
        category = await CategoryService.get_category(db, category_id)

        if data.get("name") is not None:
            name = data["name"].strip()
            if not name:
                raise ValueError("El nombre de la categoría es requerido")
            if await CategoryService.name_exists(db, name, exclude_id=category_id):
                raise ConflictError("A category with this name already exists")
            category.name = name
        if "image" in data:
            category.image = data["image"]

        await db.commit()
        await db.refresh(category)
        return category

    @staticmethod
    async def count_events(db: AsyncSession, category_id: str) -> int:
        result = await db.execute(
            select(func.count(Event.id)).where(Event.category_id == category_id)
        )
        return result.scalar_one()

    @staticmethod
    async def delete_category(db: AsyncSession, category_id: str) -> None:
        category = await CategoryService.get_category(db, category_id)
        if await CategoryService.count_events(db, category_id) > 0:
            raise ConflictError("Cannot delete category as it has associated events")

        await db.delete(category)
        await db.commit()
        logger.info(f"Categoría eliminada: {category_id}")
