"""Rutas de categorías"""
from typing import Dict, List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from services.categories.models.category import CategoryCreate, CategoryResponse, CategoryUpdate
from services.categories.services.category_service import CategoryService
from services.events.services.event_service import invalidate_events_cache
from shared.auth.dependencies import get_current_admin
from shared.database.session import get_db
from shared.utils.errors import to_http_exception

router = APIRouter()


@router.get("", response_model=List[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    """Listar categorías con eventsCount (público)"""
    return await CategoryService.list_categories(db)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    db: AsyncSession = Depends(get_db),
    admin: Dict = Depends(get_current_admin)
):
    try:
        category = await CategoryService.create_category(db, payload.model_dump())
    except Exception as e:
        raise to_http_exception(e, "Error creando categoría")
    return CategoryResponse(id=category.id, name=category.name, image=category.image)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    payload: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
    admin: Dict = Depends(get_current_admin)
):
    try:
        category = await CategoryService.update_category(
            db, category_id, payload.model_dump(exclude_unset=True)
        )
        events_count = await CategoryService.count_events(db, category_id)
    except Exception as e:
        raise to_http_exception(e, "Error actualizando categoría")

    # El nombre de la categoría aparece en los listados cacheados
    await invalidate_events_cache()
    return CategoryResponse(
        id=category.id, name=category.name, image=category.image, events_count=events_count
    )


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: str,
    db: AsyncSession = Depends(get_db),
    admin: Dict = Depends(get_current_admin)
):
    """Eliminar categoría (bloqueado si tiene eventos asociados)"""
    try:
        await CategoryService.delete_category(db, category_id)
    except Exception as e:
        raise to_http_exception(e, "Error eliminando categoría")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
