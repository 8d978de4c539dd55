"""Pruebas de creación, pago y confirmación de órdenes"""
from datetime import timedelta
from decimal import Decimal

import pytest
import stripe
from sqlalchemy import select

from services.orders.services.order_service import OrderService
from shared.database.models import Order, Transaction
from shared.utils.dates import utcnow
from shared.utils.errors import ConflictError


def _intent(**values):
    """PaymentIntent real del SDK construido sin llamar a la API"""
    return stripe.PaymentIntent.construct_from(values, "sk_test")


@pytest.fixture
def no_stripe(monkeypatch):
    def fail(**params):
        raise AssertionError("Stripe no debe invocarse")

    monkeypatch.setattr(stripe.PaymentIntent, "create", fail)
    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", fail)


async def test_free_event_order_is_confirmed_without_payment(
    client, factory, auth_headers, sent_emails, session_maker, no_stripe
):
    await factory.user("org-1", role="organizer")
    event = await factory.event("org-1", title="Open Air", is_free=True, price=Decimal("0"))

    response = await client.post(
        "/api/v1/orders",
        json={"event_id": event.id, "quantity": 2},
        headers=auth_headers("buyer-1"),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["next_step"] == "orders"
    assert body["order"]["status"] == "confirmed"
    assert body["order"]["total_price"] == 0
    assert len(body["order"]["tickets"]) == 2
    assert all(ticket["qr_code_url"].startswith("data:image/png;base64,") for ticket in body["order"]["tickets"])
    assert all(result["success"] for result in body["tickets_issued"])
    assert len(sent_emails) == 2
    assert sent_emails[0]["subject"] == "Your Ticket for Open Air"

    async with session_maker() as session:
        transactions = (await session.execute(select(Transaction))).scalars().all()
    assert len(transactions) == 1
    assert transactions[0].order_id == body["order"]["id"]


async def test_paid_event_order_goes_to_checkout(client, factory, auth_headers, sent_emails, no_stripe):
    await factory.user("org-1", role="organizer")
    event = await factory.event("org-1", price=Decimal("15.50"))

    response = await client.post(
        "/api/v1/orders",
        json={"event_id": event.id, "quantity": 3},
        headers=auth_headers("buyer-1"),
    )

    assert response.status_code == 201
    body = response.json()
    order = body["order"]
    assert body["next_step"] == "checkout"
    assert body["checkout_url"] == f"/orders/{order['id']}/checkout"
    assert order["status"] == "pending"
    assert order["total_price"] == 46.5
    assert order["event_location"] is None
    assert len(order["tickets"]) == 3
    assert sent_emails == []


async def test_order_quantity_is_limited(client, factory, auth_headers):
    await factory.user("org-1", role="organizer")
    event = await factory.event("org-1")

    too_many = await client.post(
        "/api/v1/orders", json={"event_id": event.id, "quantity": 6}, headers=auth_headers("buyer-1")
    )
    none = await client.post(
        "/api/v1/orders", json={"event_id": event.id, "quantity": 0}, headers=auth_headers("buyer-1")
    )

    assert too_many.status_code == 422
    assert none.status_code == 422


async def test_order_rejects_overselling(client, factory, auth_headers):
    await factory.user("org-1", role="organizer")
    event = await factory.event("org-1", tickets_count=3)
    headers = auth_headers("buyer-1")

    first = await client.post("/api/v1/orders", json={"event_id": event.id, "quantity": 2}, headers=headers)
    second = await client.post("/api/v1/orders", json={"event_id": event.id, "quantity": 2}, headers=headers)

    assert first.status_code == 201
    assert second.status_code == 409
    assert "Disponibles: 1" in second.json()["detail"]


async def test_banned_event_cannot_be_ordered(client, factory, auth_headers):
    await factory.user("org-1", role="organizer")
    event = await factory.event("org-1", status="Banned")

    response = await client.post(
        "/api/v1/orders", json={"event_id": event.id, "quantity": 1}, headers=auth_headers("buyer-1")
    )

    assert response.status_code == 400


async def test_order_requires_authentication(client, factory):
    await factory.user("org-1", role="organizer")
    event = await factory.event("org-1")

    response = await client.post("/api/v1/orders", json={"event_id": event.id, "quantity": 1})

    assert response.status_code in (401, 403)


async def test_payment_intent_uses_order_total(client, factory, auth_headers, monkeypatch):
    organizer = await factory.user("org-1", role="organizer")
    buyer = await factory.user("buyer-1")
    event = await factory.event(organizer.id, price=Decimal("12.34"))
    order = await factory.order(event, buyer, quantity=2, status="pending")
    calls = []

    def create(**params):
        calls.append(params)
        return _intent(
            id="pi_1", client_secret="pi_1_secret", amount=params["amount"], status="requires_payment_method"
        )

    monkeypatch.setattr(stripe.PaymentIntent, "create", create)

    response = await client.post(f"/api/v1/orders/{order.id}/payment-intent", headers=auth_headers("buyer-1"))

    assert response.status_code == 200
    assert response.json() == {"clientSecret": "pi_1_secret", "amount": 2468, "paymentIntentId": "pi_1"}
    assert calls[0]["metadata"] == {"order_id": order.id, "user_id": "buyer-1"}


async def test_payment_intent_only_for_order_owner(client, factory, auth_headers, no_stripe):
    organizer = await factory.user("org-1", role="organizer")
    buyer = await factory.user("buyer-1")
    event = await factory.event(organizer.id)
    order = await factory.order(event, buyer, status="pending")

    response = await client.post(f"/api/v1/orders/{order.id}/payment-intent", headers=auth_headers("intruder"))

    assert response.status_code == 403


async def test_confirm_payment_confirms_and_issues_tickets(client, factory, auth_headers, monkeypatch, sent_emails):
    organizer = await factory.user("org-1", role="organizer")
    buyer = await factory.user("buyer-1")
    event = await factory.event(organizer.id, price=Decimal("20.00"))
    order = await factory.order(event, buyer, quantity=2, status="pending")

    monkeypatch.setattr(
        stripe.PaymentIntent,
        "retrieve",
        lambda **params: _intent(id=params["id"], amount=4000, status="succeeded", metadata={"order_id": order.id}),
    )

    response = await client.post(
        f"/api/v1/orders/{order.id}/confirm-payment",
        json={"payment_intent_id": "pi_ok"},
        headers=auth_headers("buyer-1"),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["order"]["status"] == "confirmed"
    assert len(body["tickets_issued"]) == 2
    assert len(sent_emails) == 2


async def test_confirm_payment_requires_succeeded_intent(client, factory, auth_headers, monkeypatch, session_maker):
    organizer = await factory.user("org-1", role="organizer")
    buyer = await factory.user("buyer-1")
    event = await factory.event(organizer.id)
    order = await factory.order(event, buyer, status="pending")

    monkeypatch.setattr(
        stripe.PaymentIntent,
        "retrieve",
        lambda **params: _intent(id=params["id"], amount=2000, status="requires_payment_method", metadata={}),
    )

    response = await client.post(
        f"/api/v1/orders/{order.id}/confirm-payment",
        json={"payment_intent_id": "pi_pending"},
        headers=auth_headers("buyer-1"),
    )

    assert response.status_code == 402
    assert response.json()["status"] == "requires_payment_method"
    async with session_maker() as session:
        stored = await session.get(Order, order.id)
    assert stored.status == "pending"


async def test_confirm_payment_rejects_amount_mismatch(client, factory, auth_headers, monkeypatch):
    organizer = await factory.user("org-1", role="organizer")
    buyer = await factory.user("buyer-1")
    event = await factory.event(organizer.id)
    order = await factory.order(event, buyer, status="pending")

    monkeypatch.setattr(
        stripe.PaymentIntent,
        "retrieve",
        lambda **params: _intent(id=params["id"], amount=100, status="succeeded", metadata={"order_id": order.id}),
    )

    response = await client.post(
        f"/api/v1/orders/{order.id}/confirm-payment",
        json={"payment_intent_id": "pi_other"},
        headers=auth_headers("buyer-1"),
    )

    assert response.status_code == 400


async def test_checkout_refuses_unpaid_order(client, factory, auth_headers):
    organizer = await factory.user("org-1", role="organizer")
    buyer = await factory.user("buyer-1")
    event = await factory.event(organizer.id)
    order = await factory.order(event, buyer, status="pending")

    response = await client.post(f"/api/v1/orders/{order.id}/checkout", headers=auth_headers("buyer-1"))

    assert response.status_code == 400


async def test_checkout_of_confirmed_order_is_unchanged(client, factory, auth_headers, sent_emails):
    organizer = await factory.user("org-1", role="organizer")
    buyer = await factory.user("buyer-1")
    event = await factory.event(organizer.id)
    order = await factory.order(event, buyer, status="confirmed")

    response = await client.post(f"/api/v1/orders/{order.id}/checkout", headers=auth_headers("buyer-1"))

    assert response.status_code == 200
    assert response.json()["order"]["status"] == "confirmed"
    assert response.json()["tickets_issued"] == []
    assert sent_emails == []


async def test_list_orders_with_event_data(client, factory, auth_headers):
    organizer = await factory.user("org-1", role="organizer")
    buyer = await factory.user("buyer-1")
    category = await factory.category("Jazz")
    jazz = await factory.event(organizer.id, title="Jazz Night", category_id=category.id, images=["https://img/1.png"])
    other = await factory.event(organizer.id, title="Mystery")
    await factory.order(jazz, buyer)
    await factory.order(other, buyer)
    await factory.order(other, await factory.user("buyer-2"))

    response = await client.get("/api/v1/orders", headers=auth_headers("buyer-1"))

    assert response.status_code == 200
    orders = response.json()
    assert len(orders) == 2
    by_title = {order["event_data"]["title"]: order for order in orders}
    assert by_title["Jazz Night"]["event_data"]["category"] == "Jazz"
    assert by_title["Jazz Night"]["event_data"]["image"] == "https://img/1.png"
    assert by_title["Mystery"]["event_data"]["category"] == "uncategorized"
    assert all(order["is_upcoming"] for order in orders)


async def test_list_all_orders_requires_admin(client, auth_headers, session_maker):
    forbidden = await client.get("/api/v1/orders?all_users=true", headers=auth_headers("buyer-1"))
    allowed = await client.get("/api/v1/orders?all_users=true", headers=auth_headers("admin-1", role="admin"))

    assert forbidden.status_code == 403
    assert allowed.status_code == 200


async def test_review_is_attached_to_order(client, factory, auth_headers):
    organizer = await factory.user("org-1", role="organizer")
    buyer = await factory.user("buyer-1")
    event = await factory.event(organizer.id)
    order = await factory.order(event, buyer)

    response = await client.post(
        f"/api/v1/orders/{order.id}/review",
        json={"rating": 5, "comment": "Great show"},
        headers=auth_headers("buyer-1"),
    )

    assert response.status_code == 200
    review = response.json()["review"]
    assert review["rating"] == 5
    assert review["comment"] == "Great show"


async def test_review_only_by_buyer(client, factory, auth_headers):
    organizer = await factory.user("org-1", role="organizer")
    buyer = await factory.user("buyer-1")
    event = await factory.event(organizer.id)
    order = await factory.order(event, buyer)

    response = await client.post(
        f"/api/v1/orders/{order.id}/review",
        json={"rating": 4},
        headers=auth_headers("buyer-2"),
    )

    assert response.status_code == 403


async def test_get_missing_order(client, auth_headers, session_maker):
    response = await client.get("/api/v1/orders/does-not-exist", headers=auth_headers("buyer-1"))

    assert response.status_code == 404
    assert response.json()["detail"] == "Order not found"


async def test_confirm_payment_requires_intent_created_for_the_order(client, factory, auth_headers, monkeypatch, session_maker):
    organizer = await factory.user("org-1", role="organizer")
    buyer = await factory.user("buyer-1")
    event = await factory.event(organizer.id)
    orders = [await factory.order(event, buyer, status="pending") for _ in range(3)]

    monkeypatch.setattr(
        stripe.PaymentIntent,
        "retrieve",
        lambda **params: _intent(id=params["id"], amount=2000, status="succeeded", metadata={}),
    )

    responses = [
        await client.post(
            f"/api/v1/orders/{order.id}/confirm-payment",
            json={"payment_intent_id": "pi_paid_once"},
            headers=auth_headers("buyer-1"),
        )
        for order in orders
    ]

    assert [response.status_code for response in responses] == [400, 400, 400]
    async with session_maker() as session:
        statuses = (await session.execute(select(Order.status))).scalars().all()
    assert set(statuses) == {"pending"}


async def test_payment_intent_confirms_a_single_order(client, factory, auth_headers, monkeypatch, session_maker):
    organizer = await factory.user("org-1", role="organizer")
    buyer = await factory.user("buyer-1")
    event = await factory.event(organizer.id)
    first = await factory.order(event, buyer, status="pending")
    second = await factory.order(event, buyer, status="pending")

    monkeypatch.setattr(
        stripe.PaymentIntent,
        "retrieve",
        lambda **params: _intent(id=params["id"], amount=2000, status="succeeded", metadata={"order_id": first.id}),
    )
    confirmed = await client.post(
        f"/api/v1/orders/{first.id}/confirm-payment",
        json={"payment_intent_id": "pi_shared"},
        headers=auth_headers("buyer-1"),
    )
    retried = await client.post(
        f"/api/v1/orders/{first.id}/confirm-payment",
        json={"payment_intent_id": "pi_shared"},
        headers=auth_headers("buyer-1"),
    )

    assert confirmed.status_code == 200
    assert retried.status_code == 200
    assert retried.json()["tickets_issued"] == []

    async with session_maker() as session:
        with pytest.raises(ConflictError):
            await OrderService().confirm_order(session, second.id, payment_intent_id="pi_shared")
        stored = await session.get(Order, second.id)
        transactions = (await session.execute(select(Transaction))).scalars().all()
    assert stored.status == "pending"
    assert [t.order_id for t in transactions] == [first.id]


async def test_cancelled_order_releases_tickets(client, factory, auth_headers, no_stripe):
    await factory.user("org-1", role="organizer")
    event = await factory.event("org-1", tickets_count=5)

    held = await client.post(
        "/api/v1/orders", json={"event_id": event.id, "quantity": 5}, headers=auth_headers("squatter")
    )
    blocked = await client.post(
        "/api/v1/orders", json={"event_id": event.id, "quantity": 1}, headers=auth_headers("real-buyer")
    )
    order_id = held.json()["order"]["id"]
    foreign = await client.post(f"/api/v1/orders/{order_id}/cancel", headers=auth_headers("real-buyer"))
    cancelled = await client.post(f"/api/v1/orders/{order_id}/cancel", headers=auth_headers("squatter"))
    bought = await client.post(
        "/api/v1/orders", json={"event_id": event.id, "quantity": 1}, headers=auth_headers("real-buyer")
    )

    assert held.json()["order"]["reserved_until"] is not None
    assert blocked.status_code == 409
    assert foreign.status_code == 403
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"
    assert bought.status_code == 201


async def test_confirmed_order_cannot_be_cancelled(client, factory, auth_headers):
    organizer = await factory.user("org-1", role="organizer")
    buyer = await factory.user("buyer-1")
    event = await factory.event(organizer.id)
    order = await factory.order(event, buyer, status="confirmed")

    response = await client.post(f"/api/v1/orders/{order.id}/cancel", headers=auth_headers("buyer-1"))

    assert response.status_code == 400


async def test_expired_pending_order_stops_holding_tickets(client, factory, auth_headers, no_stripe):
    await factory.user("org-1", role="organizer")
    squatter = await factory.user("squatter")
    event = await factory.event("org-1", tickets_count=5)
    stale = await factory.order(event, squatter, quantity=5, status="pending", reserved_until=utcnow() - timedelta(minutes=1))

    bought = await client.post(
        "/api/v1/orders", json={"event_id": event.id, "quantity": 1}, headers=auth_headers("real-buyer")
    )
    renewal = await client.post(f"/api/v1/orders/{stale.id}/payment-intent", headers=auth_headers("squatter"))

    assert bought.status_code == 201
    assert renewal.status_code == 409
    assert "Disponibles: 4" in renewal.json()["detail"]


async def test_expired_reservation_is_renewed_when_tickets_remain(client, factory, auth_headers, monkeypatch):
    organizer = await factory.user("org-1", role="organizer")
    buyer = await factory.user("buyer-1")
    event = await factory.event(organizer.id, tickets_count=5)
    order = await factory.order(event, buyer, quantity=2, status="pending", reserved_until=utcnow() - timedelta(minutes=1))
    monkeypatch.setattr(
        stripe.PaymentIntent,
        "create",
        lambda **params: _intent(id="pi_2", client_secret="pi_2_secret", amount=params["amount"], status="requires_payment_method"),
    )

    response = await client.post(f"/api/v1/orders/{order.id}/payment-intent", headers=auth_headers("buyer-1"))
    stored = await client.get(f"/api/v1/orders/{order.id}", headers=auth_headers("buyer-1"))

    assert response.status_code == 200
    assert response.json()["clientSecret"] == "pi_2_secret"
    assert stored.json()["reserved_until"] > utcnow().isoformat()
