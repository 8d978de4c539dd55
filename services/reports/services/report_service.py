"""Servicio de reportes de eventos"""
import logging
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.database.models import Event, Report
from shared.utils.errors import NotFoundError

logger = logging.getLogger(__name__)


class ReportService:

    @staticmethod
    async def create_report(db: AsyncSession, data: Dict, reporter_id: str) -> Report:
        event = await db.get(Event, data["event_id"])
        if not event:
            raise NotFoundError("Evento no encontrado")

        report = Report(
            event_id=event.id,
            organizer_id=event.organizer_id,
            reporter_id=reporter_id,
            type=data["type"],
            message=data.get("message"),
        )
        db.add(report)
        await db.commit()
        await db.refresh(report)
        logger.info(f"Reporte {report.type} sobre evento {event.id} por {reporter_id}")
        return report

    @staticmethod
    async def list_reports(db: AsyncSession, event_id: Optional[str] = None) -> List[Report]:
        stmt = select(Report)
        if event_id:
            stmt = stmt.where(Report.event_id == event_id)
        result = await db.execute(stmt.order_by(Report.created_at.desc()))
        return list(result.scalars().all())
