"""Servicio de venues"""
import logging
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.database.models import Event, Venue
from shared.utils.errors import NotFoundError

logger = logging.getLogger(__name__)

LINKED_EVENTS_WARNING = (
    "This venue is linked to existing events. Remove or reassign those events before deleting it."
)


class VenueService:
    """Servicio para gestionar venues de organizers"""

    @staticmethod
    async def list_venues(
        db: AsyncSession,
        owner_uid: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> List[Venue]:
        stmt = select(Venue)
        if owner_uid:
            stmt = stmt.where(Venue.owner_uid == owner_uid)
        stmt = stmt.order_by(Venue.created_at.desc()).limit(limit).offset(offset)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_venue(db: AsyncSession, venue_id: str) -> Venue:
        venue = await db.get(Venue, venue_id)
        if not venue:
            raise NotFoundError("Venue no encontrado")
        return venue

    @staticmethod
    def _check_owner(venue: Venue, current_user: Dict) -> None:
        if current_user["role"] != "admin" and venue.owner_uid != current_user["user_id"]:
            raise PermissionError("No tienes permisos para modificar este venue")

    @staticmethod
    async def create_venue(db: AsyncSession, data: Dict, owner_uid: str) -> Venue:
        venue = Venue(owner_uid=owner_uid, **data)
        db.add(venue)
        await db.commit()
        await db.refresh(venue)
        logger.info(f"Venue creado: {venue.title} ({venue.id}) por {owner_uid}")
        return venue

    @staticmethod
    async def update_venue(db: AsyncSession, venue_id: str, data: Dict, current_user: Dict) -> Venue:
        venue = await VenueService.get_venue(db, venue_id)
        VenueService._check_owner(venue, current_user)

        for field, value in data.items():
            setattr(venue, field, value)
        await db.commit()
        await db.refresh(venue)
        return venue

    @staticmethod
    async def get_linked_events(db: AsyncSession, venue_id: str) -> List[Event]:
        result = await db.execute(
            select(Event).where(Event.venue_id == venue_id).order_by(Event.start_date.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def delete_venue(db: AsyncSession, venue_id: str, current_user: Dict) -> Dict:
        """
        Eliminar venue.

        Si algún evento referencia el venue no se elimina nada y se devuelve
        una advertencia con los eventos vinculados.
        """
        venue = await VenueService.get_venue(db, venue_id)
        VenueService._check_owner(venue, current_user)

        linked = await VenueService.get_linked_events(db, venue_id)
        if linked:
            logger.info(f"Eliminación de venue {venue_id} bloqueada: {len(linked)} eventos vinculados")
            return {
                "deleted": False,
                "warning": LINKED_EVENTS_WARNING,
                "linked_events": [{"id": event.id, "title": event.title} for event in linked],
            }

        await db.delete(venue)
        await db.commit()
        logger.info(f"Venue eliminado: {venue_id}")
        return {"deleted": True, "warning": None, "linked_events": []}
