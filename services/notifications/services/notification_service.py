"""Servicio de notificaciones in-app y avisos de actualización de eventos"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from services.notifications.services.email_service import EmailService, render_event_update_email
from shared.database.models import Event, Notification, Order
from shared.utils.errors import NotFoundError

logger = logging.getLogger(__name__)


def summarize_changes(changes: Optional[Dict[str, Any]]) -> str:
    """Nombres de campos modificados separados por coma"""
    return ", ".join((changes or {}).keys()) or "Details updated"


class NotificationService:
    """Servicio para notificar a organizers y asistentes"""

    def __init__(self, email_service: Optional[EmailService] = None):
        self.email_service = email_service or EmailService()

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        user_id: str,
        type: str,
        title: str,
        message: str,
        link: Optional[str] = None,
        related_id: Optional[str] = None,
        event_id: Optional[str] = None,
        changes: Optional[Dict] = None,
        commit: bool = True
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            link=link,
            related_id=related_id,
            event_id=event_id,
            changes=changes,
            read=False,
        )
        db.add(notification)
        if commit:
            await db.commit()
            await db.refresh(notification)
        return notification

    async def notify_event_update(
        self,
        db: AsyncSession,
        event_id: str,
        changes: Optional[Dict[str, Dict[str, Any]]] = None,
        event: Optional[Dict[str, Any]] = None,
        only_confirmed: bool = True
    ) -> Dict[str, int]:
        """
        Avisar a los compradores de un evento que éste cambió.

        Envía un email por destinatario (secuencial) y crea una notificación
        in-app por usuario, cada una en su propio commit. Los envíos y
        notificaciones fallidos se registran y no se cuentan.

        Returns:
            {"notified": emails enviados, "inAppCreated": notificaciones creadas}
        """
        result = await db.execute(select(Order).where(Order.event_id == event_id))
        orders = result.scalars().all()

        emails: List[str] = []
        user_ids: List[str] = []
        for order in orders:
            if only_confirmed and order.status and order.status != "confirmed":
                continue
            if order.user_email and order.user_email not in emails:
                emails.append(order.user_email)
            if order.user_id and order.user_id not in user_ids:
                user_ids.append(order.user_id)

        event = event or {}
        event_title = event.get("title")
        if not event_title:
            stored = await db.get(Event, event_id)
            event_title = stored.title if stored and stored.title else event_id

        html_content = render_event_update_email(event_title, event.get("startDate") or event.get("start_date"), changes)
        subject = f"Update: {event_title or 'Event'}"

        sent = 0
        for email in emails:
            if await self.email_service.send_email(email, subject, html_content):
                sent += 1
            else:
                logger.warning(f"No se pudo enviar aviso de actualización a {email} (evento {event_id})")

        summary = summarize_changes(changes)
        created = 0
        for user_id in user_ids:
            try:
                await self.create_notification(
                    db,
                    user_id=user_id,
                    type="event_update",
                    title=event_title or "Event updated",
                    message=summary,
                    event_id=event_id,
                    changes=changes or {},
                    link=f"/events/{event_id}",
                )
                created += 1
            except Exception as e:
                await db.rollback()
                logger.warning(f"No se pudo crear notificación para {user_id} (evento {event_id}): {e}")

        logger.info(
            f"Actualización de evento {event_id}: {sent}/{len(emails)} emails, {created} notificaciones in-app"
        )
        return {"notified": sent, "inAppCreated": created}

    @staticmethod
    async def list_for_user(db: AsyncSession, user_id: str, unread_only: bool = False) -> List[Notification]:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.read.is_(False))
        result = await db.execute(stmt.order_by(Notification.created_at.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def mark_read(db: AsyncSession, notification_id: str, user_id: str) -> Notification:
        notification = await db.get(Notification, notification_id)
        if not notification:
            raise NotFoundError("Notificación no encontrada")
        if notification.user_id != user_id:
            raise PermissionError("No tienes permisos para esta notificación")

        notification.read = True
        await db.commit()
        await db.refresh(notification)
        return notification
