"""Servicio de integración con Stripe (PaymentIntents y Connect)"""
import asyncio
import functools
import logging
from typing import Any, Dict, Optional

import stripe

from app.core.config import settings

logger = logging.getLogger(__name__)


class StripeService:
    """
    Wrapper del SDK de Stripe.

    El SDK es síncrono; las llamadas se ejecutan en el thread pool para no
    bloquear el event loop. Los errores de Stripe (stripe.StripeError) se
    propagan con el mensaje del proveedor.
    """

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key or settings.STRIPE_SECRET_KEY
        if not self.api_key:
            logger.warning("STRIPE_SECRET_KEY no configurado. Las llamadas a Stripe fallarán.")
        stripe.api_key = self.api_key
        self.currency = settings.STRIPE_CURRENCY

    async def _call(self, func, **kwargs) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, **kwargs))

    async def create_payment_intent(self, amount: int, metadata: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        Crear PaymentIntent

        Args:
            amount: monto en centavos
            metadata: datos de referencia (order_id, user_id)

        Returns:
            {"id": ..., "client_secret": ..., "amount": ..., "status": ...}
        """
        if not isinstance(amount, int) or amount <= 0:
            raise ValueError("Amount is required")

        params = {"amount": amount, "currency": self.currency}
        if metadata:
            params["metadata"] = metadata

        intent = await self._call(stripe.PaymentIntent.create, **params)
        logger.info(f"PaymentIntent creado: {intent.id} ({amount} {self.currency})")
        return {
            "id": intent.id,
            "client_secret": intent.client_secret,
            "amount": intent.amount,
            "status": intent.status,
        }

    async def retrieve_payment_intent(self, payment_intent_id: str) -> Dict[str, Any]:
        """PaymentIntent como dict plano"""
        intent = await self._call(stripe.PaymentIntent.retrieve, id=payment_intent_id)
        data = intent.to_dict()
        return {
            "id": data["id"],
            "amount": data["amount"],
            "status": data["status"],
            "metadata": dict(data.get("metadata") or {}),
        }

    def _settings_url(self, query: str) -> str:
        return f"{settings.APP_URL.rstrip('/')}/organizers/settings?{query}"

    async def create_account_link(self, account_id: str, return_query: str = "success") -> str:
        """Link de onboarding de Stripe Connect para una cuenta"""
        link = await self._call(
            stripe.AccountLink.create,
            account=account_id,
            refresh_url=self._settings_url("refresh"),
            return_url=self._settings_url(return_query),
            type="account_onboarding",
        )
        return link.url

    async def create_connected_account(self) -> Dict[str, str]:
        """Crear cuenta express y su link de onboarding"""
        account = await self._call(stripe.Account.create, type="express")
        onboarding_url = await self.create_account_link(account.id)
        logger.info(f"Cuenta Stripe Connect creada: {account.id}")
        return {"account_id": account.id, "onboarding_url": onboarding_url}
