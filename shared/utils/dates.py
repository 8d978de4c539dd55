"""Helpers de fechas"""
from datetime import datetime, timezone
from typing import Any, Optional


def utcnow() -> datetime:
    """Fecha actual en UTC sin tzinfo (como se guarda en la BD)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalizar un datetime con zona horaria a UTC naive"""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def to_iso(value: Any) -> Optional[str]:
    """
    Convertir un valor de fecha a ISO 8601.

    Acepta datetime o string parseable; cualquier otro valor se devuelve como str.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
        return to_iso(parsed)
    return str(value)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parsear datetime o string ISO; None si no se puede"""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def format_display_datetime(value: Any) -> str:
    """Fecha legible para emails (formato en-US: 3/14/2025, 7:30:00 PM)"""
    parsed = parse_datetime(value)
    if parsed is None:
        return str(value) if value else ""
    return f"{parsed.month}/{parsed.day}/{parsed.year}, {parsed.strftime('%I:%M:%S %p').lstrip('0')}"
