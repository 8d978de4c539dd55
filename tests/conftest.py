"""Fixtures compartidas: SQLite en memoria, Redis falso y cliente HTTP sobre la app"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["RATE_LIMIT_STORAGE_URI"] = "memory://"
os.environ["DB_AUTO_CREATE"] = "false"
os.environ["RESEND_API_KEY"] = ""
os.environ["MAIL_USER"] = ""
os.environ["MAIL_PASS"] = ""

from datetime import timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import shared.cache.redis_client as redis_client
import shared.database.connection as connection
from main import app
from services.notifications.services.email_service import EmailService
from shared.auth.jwt_handler import create_access_token
from shared.database.connection import Base
from shared.database.models import Category, Event, Order, Ticket, User, Venue
from shared.utils.dates import utcnow
from shared.utils.qr_generator import generate_ticket_number


@pytest_asyncio.fixture
async def session_maker(monkeypatch):
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(connection, "engine", engine)
    monkeypatch.setattr(connection, "async_session_maker", maker)
    yield maker
    await engine.dispose()


@pytest_asyncio.fixture
async def fake_redis(monkeypatch):
    client = FakeAsyncRedis(decode_responses=True)
    monkeypatch.setattr(redis_client, "redis_client", client)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def sent_emails(monkeypatch):
    """Reemplaza el envío real; cada email queda registrado en la lista"""
    sent = []

    async def fake_send_email(self, to_email, subject, html_content, text_content=None, inline_images=None):
        sent.append({
            "to": to_email,
            "subject": subject,
            "html": html_content,
            "inline_images": inline_images or [],
        })
        return True

    monkeypatch.setattr(EmailService, "send_email", fake_send_email)
    return sent


@pytest_asyncio.fixture
async def client(session_maker, fake_redis, sent_emails):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers():
    def _headers(user_id: str, role: str = "attendee", email: str = None, name: str = None):
        token = create_access_token({
            "sub": user_id,
            "role": role,
            "email": email or f"{user_id}@example.com",
            "name": name or user_id.title(),
        })
        return {"Authorization": f"Bearer {token}"}
    return _headers


class Factory:
    """Crea filas directamente en la BD de pruebas"""

    def __init__(self, session_maker):
        self.session_maker = session_maker

    async def _save(self, *rows):
        async with self.session_maker() as session:
            session.add_all(rows)
            await session.commit()
        return rows[0] if len(rows) == 1 else rows

    async def user(self, user_id: str, role: str = "attendee", name: str = None, **kwargs) -> User:
        return await self._save(User(
            id=user_id,
            role=role,
            name=name or user_id.title(),
            email=kwargs.pop("email", f"{user_id}@example.com"),
            **kwargs,
        ))

    async def category(self, name: str = "Music") -> Category:
        return await self._save(Category(name=name))

    async def venue(self, owner_uid: str, title: str = "Main Hall", **kwargs) -> Venue:
        return await self._save(Venue(
            owner_uid=owner_uid,
            title=title,
            address=kwargs.pop("address", "123 Main St"),
            **kwargs,
        ))

    async def event(self, organizer_id: str, title: str = "Rock Night", **kwargs) -> Event:
        data = {
            "start_date": utcnow() + timedelta(days=10),
            "end_date": utcnow() + timedelta(days=10, hours=3),
            "price": Decimal("20.00"),
            "is_free": False,
            "tickets_count": 100,
            "status": "Published",
        }
        data.update(kwargs)
        return await self._save(Event(organizer_id=organizer_id, title=title, **data))

    async def order(self, event: Event, user: User, quantity: int = 1, status: str = "confirmed", **kwargs) -> Order:
        """Orden con sus tickets"""
        price = Decimal(event.price or 0)
        order = Order(
            event_id=event.id,
            user_id=user.id,
            quantity=quantity,
            price=price,
            total_price=price * quantity,
            status=status,
            user_email=kwargs.pop("user_email", user.email),
            event_name=event.title,
            event_date=event.start_date,
            event_location="123 Main St",
            **kwargs,
        )
        async with self.session_maker() as session:
            session.add(order)
            await session.flush()
            session.add_all([
                Ticket(
                    order_id=order.id,
                    event_id=event.id,
                    user_id=user.id,
                    ticket_number=generate_ticket_number(),
                )
                for _ in range(quantity)
            ])
            await session.commit()
        return order

    async def tickets_of(self, order_id: str):
        async with self.session_maker() as session:
            result = await session.execute(select(Ticket).where(Ticket.order_id == order_id))
            return list(result.scalars().all())


@pytest.fixture
def factory(session_maker):
    return Factory(session_maker)
