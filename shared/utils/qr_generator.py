"""Utilidades para generar el QR de los tickets"""
import base64
import io
import json
import logging
import random
from typing import Optional, Tuple

import qrcode

logger = logging.getLogger(__name__)

DATA_URL_PREFIX = "data:image/png;base64,"


def generate_ticket_number() -> str:
    """Número de ticket de 6 dígitos (100000-999999)"""
    return str(random.randint(100000, 999999))


def build_ticket_qr_payload(ticket_id: Optional[str], ticket_number: Optional[str]) -> str:
    """
    Construir el payload JSON que se codifica en el QR.

    Formato: {"type":"ticket","version":1,"ticket":{"id":...,"number":...}}
    """
    payload = {
        "type": "ticket",
        "version": 1,
        "ticket": {
            "id": ticket_id or "",
            "number": ticket_number or "",
        },
    }
    return json.dumps(payload, separators=(",", ":"))


def generate_qr_png(data: str) -> bytes:
    """Renderizar `data` como PNG (corrección de errores M, margen 2, escala 6)"""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=6,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def generate_qr_data_url(data: str) -> str:
    """QR como data URL `data:image/png;base64,...`"""
    png_bytes = generate_qr_png(data)
    logger.debug(f"QR generado ({len(png_bytes)} bytes)")
    return DATA_URL_PREFIX + base64.b64encode(png_bytes).decode("utf-8")


def split_data_url(data_url: str) -> Tuple[str, bytes]:
    """Separar un data URL en (mime_type, bytes)"""
    header, _, encoded = data_url.partition("base64,")
    mime_type = header[len("data:"):].rstrip(";") or "application/octet-stream"
    return mime_type, base64.b64decode(encoded)
