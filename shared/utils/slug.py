"""Slugs para títulos de eventos"""
import re
import unicodedata

_INVALID = re.compile(r"[^\w\s-]")
_SPACES = re.compile(r"\s+")
_DASHES = re.compile(r"-+")


def slugify_title(title: str) -> str:
    """
    Convertir un título en slug legible por humanos.

    Conserva letras de cualquier alfabeto (ej: "Концерт 2025" -> "концерт-2025").
    """
    if not title:
        return ""
    value = unicodedata.normalize("NFKC", title).lower().strip()
    value = _INVALID.sub("", value).replace("_", "")
    value = _SPACES.sub("-", value)
    value = _DASHES.sub("-", value)
    return value.strip("-")
