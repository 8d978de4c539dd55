"""Servicio de configuración de organizers"""
import logging
from typing import Dict

from sqlalchemy.ext.asyncio import AsyncSession

from services.users.services.user_service import UserService
from shared.database.models import OrganizerSettings

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
    "default_ticket_quantity": 100,
    "default_ticket_price": 25.0,
    "default_visibility": "public",
    "email_notifications": True,
    "in_app_alerts": False,
    "account_id": None,
    "account_active": False,
    "facebook_url": None,
    "instagram_url": None,
    "twitter_url": None,
    "website_url": None,
}


def _to_dict(row: OrganizerSettings) -> Dict:
    data = {key: getattr(row, key) for key in DEFAULT_SETTINGS}
    data["default_ticket_price"] = float(data["default_ticket_price"])
    return data


class SettingsService:
    """Servicio para leer y actualizar la configuración de un organizer"""

    @staticmethod
    async def get_settings(db: AsyncSession, user_id: str) -> Dict:
        """Configuración guardada o los valores por defecto si no existe"""
        row = await db.get(OrganizerSettings, user_id)
        if row is None:
            return dict(DEFAULT_SETTINGS)
        return _to_dict(row)

    @staticmethod
    async def _get_or_create(db: AsyncSession, current_user: Dict) -> OrganizerSettings:
        await UserService.ensure_profile(db, current_user)
        row = await db.get(OrganizerSettings, current_user["user_id"])
        if row is None:
            row = OrganizerSettings(user_id=current_user["user_id"])
            db.add(row)
        return row

    @staticmethod
    async def update_settings(db: AsyncSession, current_user: Dict, data: Dict) -> Dict:
        """Actualizar solo los campos enviados (merge)"""
        row = await SettingsService._get_or_create(db, current_user)
        for field, value in data.items():
            setattr(row, field, value)
        await db.commit()
        logger.info(f"Configuración actualizada para {current_user['user_id']}: {sorted(data)}")
        return await SettingsService.get_settings(db, current_user["user_id"])

    @staticmethod
    async def save_stripe_account(db: AsyncSession, current_user: Dict, account_id: str) -> None:
        row = await SettingsService._get_or_create(db, current_user)
        row.account_id = account_id
        row.account_active = False
        await db.commit()
