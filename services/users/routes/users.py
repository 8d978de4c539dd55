"""Rutas de usuarios"""
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from services.events.services.event_service import invalidate_events_cache
from services.users.models.user import UserRegister, UserResponse, UserUpdate
from services.users.services.user_service import UserService
from shared.auth.dependencies import get_current_admin, get_current_user
from shared.database.session import get_db
from shared.utils.errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[UserResponse])
async def list_users(
    role: Optional[str] = Query(None, description="Filtrar por rol"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    admin: Dict = Depends(get_current_admin)
):
    """Listar usuarios (solo admin)"""
    return await UserService.list_users(db, role=role, limit=limit, offset=offset)


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_profile(
    payload: UserRegister,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """Registrar el perfil del usuario autenticado (organizer o attendee)"""
    try:
        return await UserService.register(db, current_user["user_id"], payload.model_dump())
    except Exception as e:
        raise to_http_exception(e, "Error registrando perfil")


@router.get("/me", response_model=UserResponse)
async def get_me(
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """Perfil del usuario autenticado"""
    try:
        return await UserService.get_user(db, current_user["user_id"])
    except Exception as e:
        raise to_http_exception(e, "Error obteniendo perfil")


@router.put("/me", response_model=UserResponse)
async def update_me(
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """Actualizar el perfil propio"""
    try:
        user = await UserService.update_profile(
            db, current_user["user_id"], payload.model_dump(exclude_unset=True)
        )
    except Exception as e:
        raise to_http_exception(e, "Error actualizando perfil")

    # Los listados cacheados incluyen organizer_name
    await invalidate_events_cache()
    return user


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """Obtener usuario por ID (el propio o cualquiera si es admin)"""
    if current_user["role"] != "admin" and current_user["user_id"] != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No tienes permisos para ver este usuario"
        )
    try:
        return await UserService.get_user(db, user_id)
    except Exception as e:
        raise to_http_exception(e, "Error obteniendo usuario")


@router.patch("/{user_id}/block", response_model=UserResponse)
async def toggle_block_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    admin: Dict = Depends(get_current_admin)
):
    """Bloquear / desbloquear usuario (solo admin)"""
    try:
        return await UserService.toggle_block(db, user_id)
    except Exception as e:
        raise to_http_exception(e, "Error actualizando usuario")
