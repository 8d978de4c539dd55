"""Endpoints de pago: PaymentIntent y onboarding de Stripe Connect"""
import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from services.organizer_settings.services.settings_service import SettingsService
from services.payments.models.payment import (
    CreateAccountRequest,
    CreateAccountResult,
    OnboardRequest,
    OnboardResult,
    PaymentIntentRequest,
    PaymentIntentResult,
)
from services.payments.services.stripe_service import StripeService
from shared.auth.dependencies import get_optional_user
from shared.database.session import get_db
from shared.utils.rate_limiter import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/create-payment-intent", response_model=PaymentIntentResult)
@limiter.limit(RATE_LIMITS["payment"])
async def create_payment_intent(request: Request, payload: PaymentIntentRequest):
    """Crear PaymentIntent por `amount` (centavos, USD) y devolver su client secret"""
    if not payload.amount:
        return _error("Amount is required", status.HTTP_400_BAD_REQUEST)

    try:
        intent = await StripeService().create_payment_intent(payload.amount)
    except ValueError as e:
        return _error(str(e), status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.error(f"Error creando PaymentIntent: {e}", exc_info=True)
        return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

    return {"clientSecret": intent["client_secret"]}


@router.post("/create-account", response_model=CreateAccountResult)
@limiter.limit(RATE_LIMITS["payment"])
async def create_account(
    request: Request,
    payload: CreateAccountRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Optional[Dict] = Depends(get_optional_user)
):
    """Crear cuenta express de Stripe Connect para un organizer y su link de onboarding"""
    if not payload.userId:
        return _error("User ID is required", status.HTTP_400_BAD_REQUEST)

    try:
        account = await StripeService().create_connected_account()
    except Exception as e:
        logger.error(f"Error creando cuenta Stripe para {payload.userId}: {e}", exc_info=True)
        return _error(str(e) or "Failed to create Stripe account", status.HTTP_400_BAD_REQUEST)

    # Solo se asocia la cuenta si quien llama es el propio organizer
    if current_user and current_user["user_id"] == payload.userId:
        try:
            await SettingsService.save_stripe_account(db, current_user, account["account_id"])
        except Exception as e:
            logger.error(f"No se pudo guardar la cuenta Stripe de {payload.userId}: {e}", exc_info=True)

    return {
        "accountId": account["account_id"],
        "onboardingUrl": account["onboarding_url"],
        "userId": payload.userId,
    }


@router.post("/onboard", response_model=OnboardResult)
@limiter.limit(RATE_LIMITS["payment"])
async def onboard(request: Request, payload: OnboardRequest):
    """Nuevo link de onboarding para una cuenta Connect existente"""
    if not payload.userId:
        return _error("User ID is required", status.HTTP_400_BAD_REQUEST)
    if not payload.accountId:
        return _error("Account ID is required", status.HTTP_400_BAD_REQUEST)

    try:
        url = await StripeService().create_account_link(payload.accountId, return_query="success=true")
    except Exception as e:
        logger.error(f"Error en onboarding de {payload.accountId}: {e}", exc_info=True)
        return _error(str(e) or "Failed to start onboarding", status.HTTP_500_INTERNAL_SERVER_ERROR)

    return {"url": url, "success": True}
