"""Servicio de envío de emails (Gmail SMTP o Resend)"""
import asyncio
import base64
import html
import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Any, Dict, List, Optional, Union

import resend

from app.core.config import settings
from shared.utils.dates import format_display_datetime, to_iso

logger = logging.getLogger(__name__)


class EmailService:
    """
    Servicio para enviar emails.

    Usa Resend si RESEND_API_KEY está configurado, si no SMTP (Gmail) con
    MAIL_USER / MAIL_PASS. Sin ninguno de los dos, el envío se simula.
    """

    def __init__(self):
        self.mail_user = settings.MAIL_USER
        self.mail_pass = settings.MAIL_PASS

        if settings.RESEND_API_KEY:
            resend.api_key = settings.RESEND_API_KEY
            self.provider = "resend"
            self.from_email = settings.RESEND_FROM_EMAIL
        elif self.mail_user and self.mail_pass:
            self.provider = "smtp"
            self.from_email = self.mail_user
        else:
            logger.warning("Ni RESEND_API_KEY ni MAIL_USER/MAIL_PASS configurados. Los emails no se enviarán.")
            self.provider = None
            self.from_email = self.mail_user or settings.RESEND_FROM_EMAIL

    def build_message(
        self,
        to_emails: List[str],
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        inline_images: Optional[List[Dict[str, Any]]] = None
    ) -> EmailMessage:
        """
        Construir mensaje MIME con imágenes inline referenciadas por `cid:`.

        inline_images: [{"filename": "ticket.png", "content": bytes, "content_id": "ticketQr"}]
        """
        message = EmailMessage()
        message["From"] = self.from_email
        message["To"] = ", ".join(to_emails)
        message["Subject"] = subject
        message.set_content(text_content or "Este email requiere un cliente con soporte HTML.")
        message.add_alternative(html_content, subtype="html")

        if inline_images:
            html_part = message.get_payload()[-1]
            for image in inline_images:
                html_part.add_related(
                    image["content"],
                    maintype="image",
                    subtype="png",
                    cid=f"<{image['content_id']}>",
                    filename=image["filename"],
                    disposition="inline",
                )
        return message

    def _send_smtp(self, message: EmailMessage) -> None:
        context = ssl.create_default_context()
        with smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, context=context, timeout=30) as server:
            server.login(self.mail_user, self.mail_pass)
            server.send_message(message)

    def _send_resend(
        self,
        to_emails: List[str],
        subject: str,
        html_content: str,
        text_content: Optional[str],
        inline_images: Optional[List[Dict[str, Any]]]
    ) -> Dict:
        params = {
            "from": self.from_email,
            "to": to_emails,
            "subject": subject,
            "html": html_content,
        }
        if text_content:
            params["text"] = text_content
        if inline_images:
            params["attachments"] = [
                {
                    "filename": image["filename"],
                    "content": base64.b64encode(image["content"]).decode("utf-8"),
                    "content_id": image["content_id"],
                }
                for image in inline_images
            ]
        return resend.Emails.send(params)

    async def send_email(
        self,
        to_email: Union[str, List[str]],
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        inline_images: Optional[List[Dict[str, Any]]] = None
    ) -> bool:
        """
        Enviar email

        Returns:
            True si se envió correctamente, False en caso contrario
        """
        to_emails = [to_email] if isinstance(to_email, str) else list(to_email)

        if self.provider is None:
            logger.warning(f"Email no configurado. Email simulado a {to_emails}: {subject}")
            return True

        loop = asyncio.get_running_loop()
        try:
            if self.provider == "resend":
                result = await loop.run_in_executor(
                    None, self._send_resend, to_emails, subject, html_content, text_content, inline_images
                )
                logger.info(f"Email enviado a {to_emails}: {subject} (ID: {result.get('id', 'N/A')})")
            else:
                message = self.build_message(to_emails, subject, html_content, text_content, inline_images)
                await loop.run_in_executor(None, self._send_smtp, message)
                logger.info(f"Email enviado a {to_emails}: {subject}")
            return True
        except Exception as e:
            logger.error(f"Error enviando email a {to_emails}: {e}", exc_info=True)
            return False


def render_ticket_email(event_name: str, event_date: Any, event_location: Optional[str]) -> str:
    """HTML del email de ticket; el QR se referencia como cid:ticketQr"""
    name = html.escape(event_name or "")
    location = html.escape(event_location) if event_location else "To be announced"
    return f"""
        <div style="font-family: Arial, sans-serif; color: #333; line-height: 1.5; padding: 20px;">
          <h1 style="color: #1e3a8a;">🎟️ Your Ticket for {name}</h1>
          <p><strong>Date:</strong> {html.escape(format_display_datetime(event_date))}</p>
          <p><strong>Location:</strong> {location}</p>
          <p style="margin-top: 20px; margin-bottom: 20px;">
            Please present this QR code at the entrance:
          </p>
          <div style="text-align: center; margin: 20px 0;">
            <img src="cid:ticketQr" alt="QR Code" style="width: 200px; height: 200px; border: 2px solid #1e3a8a; border-radius: 12px;" />
          </div>
          <p style="font-size: 14px; color: #555; margin-top: 20px;">
            Thank you for your purchase! We look forward to seeing you at the event.
          </p>
          <p style="font-size: 12px; color: #999;">
            This is an automated email. Please do not reply.
          </p>
        </div>
    """


def format_change_value(value: Any) -> str:
    """Valor de un cambio para mostrar: fechas en ISO, vacío como '-'"""
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return to_iso(value) or "-"


def render_change_lines(changes: Optional[Dict[str, Dict[str, Any]]]) -> List[str]:
    lines = []
    for key, value in (changes or {}).items():
        value = value or {}
        before = html.escape(format_change_value(value.get("before")))
        after = html.escape(format_change_value(value.get("after")))
        lines.append(
            f'<li><strong>{html.escape(key)}</strong>: <span style="color:#991b1b">{before}</span>'
            f' ➜ <span style="color:#166534">{after}</span></li>'
        )
    return lines


def render_event_update_email(
    event_title: Optional[str],
    start_date: Any,
    changes: Optional[Dict[str, Dict[str, Any]]]
) -> str:
    """HTML del email de actualización de evento"""
    change_lines = render_change_lines(changes)
    date_str = format_display_datetime(start_date) if start_date else ""

    date_html = f'<p style="margin:0 0 12px;"><strong>Date:</strong> {html.escape(date_str)}</p>' if date_str else ""
    if change_lines:
        changes_html = f'<p style="margin:12px 0 6px;">Changes:</p><ul>{"".join(change_lines)}</ul>'
    else:
        changes_html = '<p style="margin:12px 0;">Details have been updated.</p>'

    return f"""
      <div style="font-family: Arial, sans-serif; color: #333; line-height: 1.6; padding: 20px;">
        <h2 style="margin:0 0 8px;">🔔 Event Update Notification</h2>
        <p style="margin:0 0 16px;">The event <strong>{html.escape(event_title or "(Untitled)")}</strong> has been updated.</p>
        {date_html}
        {changes_html}
        <p style="font-size:12px; color:#666; margin-top:20px;">This is an automated message. Please do not reply.</p>
      </div>
    """
