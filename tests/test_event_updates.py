"""Pruebas del aviso de actualización de eventos a compradores"""
from sqlalchemy import select

from shared.database.models import Notification


async def test_event_update_requires_event_id(client):
    response = await client.post("/api/event-update-notification", json={})

    assert response.status_code == 400
    assert response.json()["success"] is False


async def test_event_without_orders_notifies_nobody(client, factory, sent_emails):
    await factory.user("org-1", role="organizer")
    event = await factory.event("org-1")

    response = await client.post("/api/event-update-notification", json={"eventId": event.id})

    assert response.status_code == 200
    assert response.json() == {"success": True, "notified": 0, "inAppCreated": 0}
    assert sent_emails == []


async def test_only_confirmed_orders_are_notified_once(client, factory, sent_emails, session_maker):
    await factory.user("org-1", role="organizer")
    ana = await factory.user("ana")
    bob = await factory.user("bob")
    carl = await factory.user("carl")
    event = await factory.event("org-1", title="Blues Night")
    await factory.order(event, ana)
    await factory.order(event, ana)
    await factory.order(event, bob)
    await factory.order(event, carl, status="pending")

    response = await client.post("/api/event-update-notification", json={
        "eventId": event.id,
        "changes": {
            "title": {"before": "Blues", "after": "Blues Night"},
            "start_date": {"before": "2025-01-01T20:00:00Z", "after": "2025-01-02T20:00:00Z"},
        },
    })

    assert response.json() == {"success": True, "notified": 2, "inAppCreated": 2}
    assert sorted(email["to"] for email in sent_emails) == ["ana@example.com", "bob@example.com"]
    assert sent_emails[0]["subject"] == "Update: Blues Night"
    assert "<li><strong>title</strong>" in sent_emails[0]["html"]
    assert "2025-01-02T20:00:00Z" in sent_emails[0]["html"]

    async with session_maker() as session:
        notifications = (await session.execute(select(Notification))).scalars().all()
    assert {n.user_id for n in notifications} == {"ana", "bob"}
    assert all(n.type == "event_update" for n in notifications)
    assert notifications[0].message == "title, start_date"


async def test_pending_orders_included_when_requested(client, factory, sent_emails):
    await factory.user("org-1", role="organizer")
    ana = await factory.user("ana")
    carl = await factory.user("carl")
    event = await factory.event("org-1")
    await factory.order(event, ana)
    await factory.order(event, carl, status="pending")

    response = await client.post("/api/event-update-notification", json={
        "eventId": event.id,
        "onlyConfirmed": False,
        "event": {"title": "Renamed"},
    })

    assert response.json() == {"success": True, "notified": 2, "inAppCreated": 2}
    assert all(email["subject"] == "Update: Renamed" for email in sent_emails)
    assert "Details have been updated." in sent_emails[0]["html"]


async def test_failed_emails_are_not_counted(client, factory, monkeypatch):
    from services.notifications.services.email_service import EmailService

    await factory.user("org-1", role="organizer")
    ana = await factory.user("ana")
    event = await factory.event("org-1")
    await factory.order(event, ana)

    async def failing_send(self, *args, **kwargs):
        return False

    monkeypatch.setattr(EmailService, "send_email", failing_send)

    response = await client.post("/api/event-update-notification", json={"eventId": event.id})

    assert response.json() == {"success": True, "notified": 0, "inAppCreated": 1}


async def test_failed_in_app_notification_is_skipped(client, factory, monkeypatch, session_maker):
    from services.notifications.services.notification_service import NotificationService

    await factory.user("org-1", role="organizer")
    ana = await factory.user("ana")
    bob = await factory.user("bob")
    event = await factory.event("org-1")
    await factory.order(event, ana)
    await factory.order(event, bob)
    create_notification = NotificationService.create_notification

    async def failing_for_ana(db, user_id, *args, **kwargs):
        if user_id == "ana":
            raise RuntimeError("write failed")
        return await create_notification(db, user_id, *args, **kwargs)

    monkeypatch.setattr(NotificationService, "create_notification", staticmethod(failing_for_ana))

    response = await client.post("/api/event-update-notification", json={"eventId": event.id})

    assert response.status_code == 200
    assert response.json() == {"success": True, "notified": 2, "inAppCreated": 1}
    async with session_maker() as session:
        notifications = (await session.execute(select(Notification))).scalars().all()
    assert [n.user_id for n in notifications] == ["bob"]
