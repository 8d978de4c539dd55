"""Servicio de usuarios y perfiles"""
import logging
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.database.models import User
from shared.utils.errors import NotFoundError

logger = logging.getLogger(__name__)


class UserService:
    """Servicio para gestionar perfiles de usuario"""

    @staticmethod
    async def list_users(
        db: AsyncSession,
        role: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> List[User]:
        stmt = select(User)
        if role:
            stmt = stmt.where(User.role == role)
        stmt = stmt.order_by(User.created_at.desc()).limit(limit).offset(offset)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_user(db: AsyncSession, user_id: str) -> User:
        user = await db.get(User, user_id)
        if not user:
            raise NotFoundError("Usuario no encontrado")
        return user

    @staticmethod
    async def ensure_profile(db: AsyncSession, current_user: Dict) -> User:
        """
        Obtener el perfil del usuario autenticado, creándolo si no existe.

        No hace commit: se agrega a la transacción del llamador.
        """
        user = await db.get(User, current_user["user_id"])
        if user:
            return user

        user = User(
            id=current_user["user_id"],
            email=current_user.get("email") or "",
            name=current_user.get("name"),
            role=current_user.get("role") or "attendee",
        )
        db.add(user)
        await db.flush()
        logger.info(f"Perfil creado para {user.id} ({user.role})")
        return user

    @staticmethod
    async def register(db: AsyncSession, user_id: str, data: Dict) -> User:
        """Registrar (o completar) el perfil tras el alta en el proveedor de identidad"""
        user = await db.get(User, user_id)
        if user is None:
            user = User(id=user_id)
            db.add(user)

        user.name = data["name"]
        user.email = data["email"]
        user.role = data.get("role", "attendee")
        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def update_profile(db: AsyncSession, user_id: str, data: Dict) -> User:
        user = await UserService.get_user(db, user_id)
        for field, value in data.items():
            setattr(user, field, value)
        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def toggle_block(db: AsyncSession, user_id: str) -> User:
        """Bloquear / desbloquear usuario"""
        user = await UserService.get_user(db, user_id)
        user.blocked = not user.blocked
        await db.commit()
        await db.refresh(user)
        logger.info(f"Usuario {user_id} {'bloqueado' if user.blocked else 'desbloqueado'}")
        return user

    @staticmethod
    async def assert_can_publish(db: AsyncSession, current_user: Dict) -> User:
        """Los organizers bloqueados no pueden crear eventos ni venues"""
        user = await UserService.ensure_profile(db, current_user)
        if user.blocked:
            raise PermissionError("Tu cuenta está bloqueada")
        return user
