"""Rutas de órdenes y checkout"""
import logging
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
import stripe
from sqlalchemy.ext.asyncio import AsyncSession

from services.orders.models.order import (
    ConfirmPaymentRequest,
    OrderConfirmResponse,
    OrderCreate,
    OrderCreateResponse,
    OrderResponse,
    PaymentIntentResponse,
    ReviewCreate,
)
from services.orders.services.order_service import OrderService, serialize_order
from services.payments.services.stripe_service import StripeService
from shared.auth.dependencies import get_current_user
from shared.database.session import get_db
from shared.utils.errors import to_http_exception
from shared.utils.rate_limiter import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=OrderCreateResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["order"])
async def create_order(
    request: Request,  # Necesario para rate limiter
    payload: OrderCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """
    Crear orden con N tickets

    Eventos gratuitos: la orden queda confirmada y los tickets se emiten (next_step=orders).
    Eventos pagados: la orden queda pending y se continúa en el checkout (next_step=checkout).
    """
    service = OrderService()
    try:
        order, issuance = await service.create_order(db, current_user, payload.event_id, payload.quantity)
    except Exception as e:
        raise to_http_exception(e, "Error creando orden")

    if order.status == "confirmed":
        return {"order": serialize_order(order), "next_step": "orders", "tickets_issued": issuance}
    return {
        "order": serialize_order(order),
        "next_step": "checkout",
        "checkout_url": f"/orders/{order.id}/checkout",
    }


@router.get("", response_model=List[OrderResponse])
async def list_orders(
    all_users: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """Órdenes del usuario actual (admin puede pedir todas con all_users=true)"""
    if all_users and current_user["role"] != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Se requieren permisos de administrador"
        )
    user_id = None if all_users else current_user["user_id"]
    orders = await OrderService.list_orders(db, user_id=user_id)
    return [serialize_order(order) for order in orders]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    try:
        order = await OrderService.get_order(db, order_id, current_user)
    except Exception as e:
        raise to_http_exception(e, "Error obteniendo orden")
    return serialize_order(order)


@router.post("/{order_id}/payment-intent", response_model=PaymentIntentResponse)
@limiter.limit(RATE_LIMITS["payment"])
async def create_order_payment_intent(
    request: Request,
    order_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """PaymentIntent por el total de la orden (amount = total_price x 100)"""
    try:
        order = await OrderService.get_order(db, order_id, current_user)
        if order.status != "pending":
            raise ValueError(f"La orden no está pendiente de pago ({order.status})")
        amount = OrderService.amount_in_cents(order)
        if amount <= 0:
            raise ValueError("La orden no requiere pago")
        order = await OrderService.renew_reservation(db, order)
    except Exception as e:
        raise to_http_exception(e, "Error preparando pago")

    try:
        intent = await StripeService().create_payment_intent(
            amount, metadata={"order_id": order.id, "user_id": order.user_id}
        )
    except stripe.StripeError as e:
        logger.error(f"Stripe rechazó PaymentIntent de la orden {order_id}: {e}", exc_info=True)
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"error": e.user_message or str(e)})

    return {"clientSecret": intent["client_secret"], "amount": amount, "paymentIntentId": intent["id"]}


@router.post("/{order_id}/confirm-payment", response_model=OrderConfirmResponse)
@limiter.limit(RATE_LIMITS["payment"])
async def confirm_order_payment(
    request: Request,
    order_id: str,
    payload: ConfirmPaymentRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """
    Confirmar la orden tras el pago con tarjeta.

    El PaymentIntent se verifica contra Stripe: debe estar succeeded, por el monto
    de la orden y creado para ella (metadata.order_id). Cada pago confirma una sola orden.
    """
    try:
        order = await OrderService.get_order(db, order_id, current_user)
    except Exception as e:
        raise to_http_exception(e, "Error obteniendo orden")

    try:
        intent = await StripeService().retrieve_payment_intent(payload.payment_intent_id)
    except stripe.StripeError as e:
        logger.error(f"Error consultando PaymentIntent {payload.payment_intent_id}: {e}", exc_info=True)
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"error": e.user_message or str(e)})

    if intent["status"] != "succeeded":
        return JSONResponse(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            content={"error": "El pago no se completó", "status": intent["status"]},
        )
    if intent["amount"] != OrderService.amount_in_cents(order) or intent["metadata"].get("order_id") != order.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="El PaymentIntent no corresponde a esta orden"
        )

    try:
        order, issuance = await OrderService().confirm_order(
            db, order_id, current_user, payment_intent_id=intent["id"]
        )
    except Exception as e:
        raise to_http_exception(e, "Error confirmando orden")
    return {"order": serialize_order(order), "tickets_issued": issuance}


@router.post("/{order_id}/checkout", response_model=OrderConfirmResponse)
async def checkout_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """
    Confirmar orden sin pago (total 0)

    Las órdenes con monto deben confirmarse con confirm-payment.
    """
    try:
        order = await OrderService.get_order(db, order_id, current_user)
        if order.status != "confirmed" and OrderService.amount_in_cents(order) > 0 and current_user["role"] != "admin":
            raise ValueError("La orden requiere pago")
        order, issuance = await OrderService().confirm_order(db, order_id, current_user)
    except Exception as e:
        raise to_http_exception(e, "Error confirmando orden")
    return {"order": serialize_order(order), "tickets_issued": issuance}


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """Cancelar una orden pending (comprador o admin); sus tickets vuelven al cupo"""
    try:
        order = await OrderService.cancel_order(db, order_id, current_user)
    except Exception as e:
        raise to_http_exception(e, "Error cancelando orden")
    return serialize_order(order)


@router.post("/{order_id}/review", response_model=OrderResponse)
async def review_order(
    order_id: str,
    payload: ReviewCreate,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    try:
        order = await OrderService.add_review(db, order_id, current_user, payload.rating, payload.comment)
    except Exception as e:
        raise to_http_exception(e, "Error guardando reseña")
    return serialize_order(order)
