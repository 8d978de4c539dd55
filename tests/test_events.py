"""Pruebas de gestión de eventos"""
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import select

from shared.database.models import Event, Notification, Review
from shared.utils.dates import utcnow


def _event_payload(**overrides):
    payload = {
        "title": "Rock Night 2025!",
        "description": "Live bands",
        "start_date": "2030-05-01T20:00:00Z",
        "end_date": "2030-05-01T23:00:00Z",
        "price": 30,
        "tickets_count": 200,
    }
    payload.update(overrides)
    return payload


async def test_create_event_as_organizer(client, auth_headers, factory):
    venue = await factory.venue("org-1")
    headers = auth_headers("org-1", role="organizer", name="Olga")

    response = await client.post("/api/v1/events", json=_event_payload(venue_id=venue.id), headers=headers)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "Published"
    assert body["slug"] == "rock-night-2025"
    assert body["organizer_id"] == "org-1"
    assert body["organizer_name"] == "Olga"
    assert body["venue_data"] == {"id": venue.id, "name": "Main Hall", "address": "123 Main St"}


async def test_free_event_price_is_zero(client, auth_headers):
    response = await client.post(
        "/api/v1/events",
        json=_event_payload(is_free=True, price=50),
        headers=auth_headers("org-1", role="organizer"),
    )

    assert response.status_code == 201
    assert response.json()["price"] == 0


async def test_attendee_cannot_create_event(client, auth_headers):
    response = await client.post("/api/v1/events", json=_event_payload(), headers=auth_headers("buyer-1"))

    assert response.status_code == 403


async def test_blocked_organizer_cannot_create_event(client, auth_headers, factory):
    await factory.user("org-1", role="organizer", blocked=True)

    response = await client.post(
        "/api/v1/events", json=_event_payload(), headers=auth_headers("org-1", role="organizer")
    )

    assert response.status_code == 403


async def test_end_date_before_start_is_rejected(client, auth_headers):
    response = await client.post(
        "/api/v1/events",
        json=_event_payload(end_date="2030-04-30T20:00:00Z"),
        headers=auth_headers("org-1", role="organizer"),
    )

    assert response.status_code == 400


async def test_event_detail_reports_available_tickets(client, factory):
    organizer = await factory.user("org-1", role="organizer")
    buyer = await factory.user("buyer-1")
    event = await factory.event(organizer.id, tickets_count=10)
    await factory.order(event, buyer, quantity=3)
    await factory.order(event, buyer, quantity=2, status="cancelled")

    response = await client.get(f"/api/v1/events/{event.id}")

    assert response.status_code == 200
    assert response.json()["tickets_available"] == 7


async def test_missing_event_returns_404(client):
    response = await client.get("/api/v1/events/nope")

    assert response.status_code == 404


async def test_event_list_is_cached_until_write(client, factory, auth_headers):
    await factory.user("org-1", role="organizer")
    await factory.event("org-1", title="First")

    first = await client.get("/api/v1/events")
    await factory.event("org-1", title="Second")
    cached = await client.get("/api/v1/events")
    searched = await client.get("/api/v1/events", params={"search": "Second"})

    assert [e["title"] for e in first.json()] == ["First"]
    assert [e["title"] for e in cached.json()] == ["First"]
    assert [e["title"] for e in searched.json()] == ["Second"]

    await client.post("/api/v1/events", json=_event_payload(title="Third"), headers=auth_headers("org-1", role="organizer"))
    refreshed = await client.get("/api/v1/events")
    assert {e["title"] for e in refreshed.json()} == {"First", "Second", "Third"}


async def test_events_by_venue_sorted_by_start_date(client, factory):
    await factory.user("org-1", role="organizer")
    venue = await factory.venue("org-1")
    await factory.event("org-1", title="Later", venue_id=venue.id, start_date=utcnow() + timedelta(days=20))
    await factory.event("org-1", title="Sooner", venue_id=venue.id, start_date=utcnow() + timedelta(days=2))
    await factory.event("org-1", title="Elsewhere")

    response = await client.get(f"/api/v1/events/venue/{venue.id}")

    assert [e["title"] for e in response.json()] == ["Sooner", "Later"]


async def test_update_notifies_confirmed_buyers(client, factory, auth_headers, sent_emails):
    organizer = await factory.user("org-1", role="organizer")
    ana = await factory.user("ana")
    carl = await factory.user("carl")
    event = await factory.event(organizer.id, title="Old Title", price=Decimal("20.00"))
    await factory.order(event, ana)
    await factory.order(event, carl, status="pending")

    response = await client.put(
        f"/api/v1/events/{event.id}",
        json={"title": "New Title", "price": 25},
        headers=auth_headers("org-1", role="organizer"),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "New Title"
    assert body["changes"] == {
        "title": {"before": "Old Title", "after": "New Title"},
        "price": {"before": 20.0, "after": 25.0},
    }
    assert body["notification"] == {"notified": 1, "inAppCreated": 1}
    assert [email["to"] for email in sent_emails] == ["ana@example.com"]


async def test_date_change_also_notifies_pending_orders(client, factory, auth_headers, sent_emails):
    organizer = await factory.user("org-1", role="organizer")
    ana = await factory.user("ana")
    carl = await factory.user("carl")
    event = await factory.event(organizer.id)
    await factory.order(event, ana)
    await factory.order(event, carl, status="pending")

    response = await client.put(
        f"/api/v1/events/{event.id}",
        json={"start_date": "2031-01-01T20:00:00Z", "end_date": "2031-01-01T23:00:00Z"},
        headers=auth_headers("org-1", role="organizer"),
    )

    assert response.status_code == 200
    assert set(response.json()["changes"]) == {"start_date", "end_date"}
    assert response.json()["notification"] == {"notified": 2, "inAppCreated": 2}


async def test_update_without_changes_sends_nothing(client, factory, auth_headers, sent_emails):
    organizer = await factory.user("org-1", role="organizer")
    ana = await factory.user("ana")
    event = await factory.event(organizer.id, title="Same")
    await factory.order(event, ana)

    response = await client.put(
        f"/api/v1/events/{event.id}",
        json={"title": "Same", "images": ["https://img/2.png"]},
        headers=auth_headers("org-1", role="organizer"),
    )

    assert response.status_code == 200
    assert response.json()["changes"] == {}
    assert response.json()["notification"] is None
    assert sent_emails == []


async def test_only_owner_updates_event(client, factory, auth_headers):
    await factory.user("org-1", role="organizer")
    event = await factory.event("org-1")

    response = await client.put(
        f"/api/v1/events/{event.id}",
        json={"title": "Hijacked"},
        headers=auth_headers("org-2", role="organizer"),
    )

    assert response.status_code == 403


async def test_ban_event_notifies_organizer(client, factory, auth_headers, session_maker):
    await factory.user("org-1", role="organizer")
    event = await factory.event("org-1", title="Shady Party")

    forbidden = await client.patch(
        f"/api/v1/events/{event.id}/status", json={"status": "Banned"}, headers=auth_headers("org-1", role="organizer")
    )
    response = await client.patch(
        f"/api/v1/events/{event.id}/status", json={"status": "Banned"}, headers=auth_headers("admin-1", role="admin")
    )

    assert forbidden.status_code == 403
    assert response.status_code == 200
    assert response.json()["status"] == "Banned"
    async with session_maker() as session:
        notification = (await session.execute(select(Notification))).scalar_one()
    assert notification.user_id == "org-1"
    assert notification.type == "event_banned"
    assert "Shady Party" in notification.message


async def test_delete_refused_with_confirmed_orders(client, factory, auth_headers, session_maker):
    organizer = await factory.user("org-1", role="organizer")
    ana = await factory.user("ana")
    sold = await factory.event(organizer.id, title="Sold")
    empty = await factory.event(organizer.id, title="Empty")
    await factory.order(sold, ana)
    await factory.order(empty, ana, status="pending")
    headers = auth_headers("org-1", role="organizer")

    refused = await client.delete(f"/api/v1/events/{sold.id}", headers=headers)
    deleted = await client.delete(f"/api/v1/events/{empty.id}", headers=headers)

    assert refused.status_code == 409
    assert deleted.status_code == 204
    async with session_maker() as session:
        remaining = (await session.execute(select(Event.title))).scalars().all()
    assert remaining == ["Sold"]


async def test_event_reviews_newest_first_in_pages(client, factory, session_maker):
    await factory.user("org-1", role="organizer")
    buyer = await factory.user("buyer-1", name="Ana", image="https://img/ana.png")
    event = await factory.event("org-1")
    order = await factory.order(event, buyer)
    now = utcnow()
    async with session_maker() as session:
        session.add_all([
            Review(
                order_id=order.id,
                event_id=event.id,
                user_id=buyer.id,
                rating=index % 5 + 1,
                comment=f"review {index}",
                user_name="Ana",
                user_avatar="https://img/ana.png",
                created_at=now - timedelta(hours=index),
            )
            for index in range(6)
        ])
        await session.commit()

    first_page = await client.get(f"/api/v1/events/{event.id}/reviews")
    second_page = await client.get(f"/api/v1/events/{event.id}/reviews", params={"offset": 5})
    missing = await client.get("/api/v1/events/nope/reviews")

    assert first_page.status_code == 200
    assert [r["comment"] for r in first_page.json()] == [f"review {i}" for i in range(5)]
    assert first_page.json()[0]["user_name"] == "Ana"
    assert first_page.json()[0]["user_avatar"] == "https://img/ana.png"
    assert [r["comment"] for r in second_page.json()] == ["review 5"]
    assert missing.status_code == 404


async def test_posted_review_is_listed_on_event(client, factory, auth_headers):
    await factory.user("org-1", role="organizer")
    buyer = await factory.user("buyer-1", name="Ana")
    event = await factory.event("org-1")
    order = await factory.order(event, buyer)

    await client.post(
        f"/api/v1/orders/{order.id}/review",
        json={"rating": 4, "comment": "Loud and fun"},
        headers=auth_headers("buyer-1"),
    )
    response = await client.get(f"/api/v1/events/{event.id}/reviews")

    assert [(r["rating"], r["comment"], r["user_name"]) for r in response.json()] == [(4, "Loud and fun", "Ana")]
