"""Rutas de reportes"""
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from services.reports.models.report import ReportCreate, ReportResponse
from services.reports.services.report_service import ReportService
from shared.auth.dependencies import get_current_admin, get_current_user
from shared.database.session import get_db
from shared.utils.errors import to_http_exception

router = APIRouter()


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def create_report(
    payload: ReportCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """Reportar un evento"""
    try:
        return await ReportService.create_report(db, payload.model_dump(), current_user["user_id"])
    except Exception as e:
        raise to_http_exception(e, "Error creando reporte")


@router.get("", response_model=List[ReportResponse])
async def list_reports(
    event_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    admin: Dict = Depends(get_current_admin)
):
    """Listar reportes (solo admin)"""
    return await ReportService.list_reports(db, event_id=event_id)
