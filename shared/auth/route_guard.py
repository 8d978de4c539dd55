"""Middleware de protección de páginas basado en cookies (user, role)"""
import json
import logging
import re
from typing import Mapping, Optional
from urllib.parse import unquote, urlencode

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse

logger = logging.getLogger(__name__)

EVENT_ORDER_PATH = re.compile(r"^/events/[^/]+/order/?$")


def get_cookie_role(cookies: Mapping[str, str]) -> Optional[str]:
    """Rol desde la cookie `user` (JSON con role/userRole) o, si falta, desde la cookie `role`"""
    role = None
    user_cookie = cookies.get("user")
    if user_cookie:
        try:
            parsed = json.loads(unquote(user_cookie))
            if isinstance(parsed, dict):
                role = parsed.get("role") or parsed.get("userRole")
        except ValueError:
            logger.debug("Cookie 'user' no es JSON válido")

    if not role:
        role = cookies.get("role") or None
    return role


def _redirect_to(target: str, path: str) -> str:
    return f"{target}?{urlencode({'redirect': path})}"


def resolve_redirect(path: str, cookies: Mapping[str, str]) -> Optional[str]:
    """
    Calcular la redirección para una ruta de página.

    Returns:
        URL de destino (login) o None si la request puede continuar
    """
    if path.startswith("/orders") or EVENT_ORDER_PATH.match(path):
        if not cookies.get("user"):
            return _redirect_to("/login", path)

    if path.startswith("/organizers"):
        if get_cookie_role(cookies) != "organizer":
            return _redirect_to("/login", path)

    if path.startswith("/admin") and not path.startswith("/admin/login"):
        if get_cookie_role(cookies) != "admin":
            return _redirect_to("/admin/login", path)

    return None


class RouteGuardMiddleware(BaseHTTPMiddleware):
    """Redirige a login las páginas protegidas cuando faltan las cookies requeridas"""

    async def dispatch(self, request: Request, call_next):
        target = resolve_redirect(request.url.path, request.cookies)
        if target:
            logger.info(f"Acceso denegado a {request.url.path}, redirigiendo a {target}")
            return RedirectResponse(target, status_code=307)
        return await call_next(request)
