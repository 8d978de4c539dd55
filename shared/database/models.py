"""Modelos SQLAlchemy de BookTik"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Numeric, Text, Float, JSON
from sqlalchemy.orm import relationship
from datetime import timedelta
import uuid
from shared.database.connection import Base
from shared.utils.dates import utcnow


def new_id() -> str:
    return str(uuid.uuid4())


def reservation_deadline():
    """Fin de la reserva de tickets de una orden pending"""
    from app.core.config import settings
    return utcnow() + timedelta(minutes=settings.PENDING_ORDER_TTL_MINUTES)


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=new_id)  # uid del proveedor de identidad
    name = Column(String, nullable=True)
    email = Column(String, nullable=False, index=True)
    role = Column(String, nullable=False, default="attendee")  # attendee, organizer, admin
    blocked = Column(Boolean, nullable=False, default=False)
    image = Column(String, nullable=True)
    gender = Column(String, nullable=True)
    age = Column(Integer, nullable=True)
    country = Column(String, nullable=True)
    city = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False, unique=True)
    image = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Venue(Base):
    __tablename__ = "venues"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String, nullable=False)
    address = Column(String, nullable=True)
    city = Column(String, nullable=True)
    country = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    images = Column(JSON, nullable=False, default=list)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    capacity = Column(Integer, nullable=True)
    owner_uid = Column(String(64), ForeignKey("users.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)
    venue_id = Column(String(36), ForeignKey("venues.id"), nullable=True, index=True)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=True, index=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    is_free = Column(Boolean, nullable=False, default=False)
    tickets_count = Column(Integer, nullable=False, default=0)
    images = Column(JSON, nullable=False, default=list)
    organizer_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String, nullable=False, default="Published")  # Published, Banned
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relaciones (carga eager: las sesiones son async)
    venue = relationship("Venue", lazy="selectin")
    category = relationship("Category", lazy="selectin")
    organizer = relationship("User", lazy="selectin")


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)  # precio unitario al momento de la orden
    total_price = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(String, nullable=False, default="pending")  # pending, confirmed, cancelled
    user_email = Column(String, nullable=True)
    event_name = Column(String, nullable=True)
    event_date = Column(DateTime, nullable=True)
    event_location = Column(String, nullable=True)
    review = Column(JSON, nullable=True)
    reserved_until = Column(DateTime, default=reservation_deadline, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    tickets = relationship("Ticket", back_populates="order", lazy="selectin", order_by="Ticket.created_at")
    event = relationship("Event", lazy="selectin")


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    ticket_number = Column(String(6), nullable=False)
    qr_code_url = Column(Text, nullable=True)
    checked_in = Column(Boolean, nullable=False, default=False)
    checked_in_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    order = relationship("Order", back_populates="tickets")
    user = relationship("User", lazy="selectin")


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    status = Column(String, nullable=False, default="success")
    payment_intent_id = Column(String, nullable=True, unique=True)  # un pago confirma una sola orden
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Review(Base):
    __tablename__ = "reviews"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    user_name = Column(String, nullable=True)
    user_avatar = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Report(Base):
    __tablename__ = "reports"

    id = Column(String(36), primary_key=True, default=new_id)
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False, index=True)
    organizer_id = Column(String(64), nullable=True)
    reporter_id = Column(String(64), nullable=True)
    type = Column(String, nullable=False)
    message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(64), nullable=False, index=True)
    event_id = Column(String(36), nullable=True)
    type = Column(String, nullable=False)  # event_update, event_published, event_banned
    title = Column(String, nullable=False)
    message = Column(Text, nullable=True)
    changes = Column(JSON, nullable=True)
    link = Column(String, nullable=True)
    related_id = Column(String(36), nullable=True)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class OrganizerSettings(Base):
    __tablename__ = "organizer_settings"

    user_id = Column(String(64), ForeignKey("users.id"), primary_key=True)
    default_ticket_quantity = Column(Integer, nullable=False, default=100)
    default_ticket_price = Column(Numeric(10, 2), nullable=False, default=25)
    default_visibility = Column(String, nullable=False, default="public")
    email_notifications = Column(Boolean, nullable=False, default=True)
    in_app_alerts = Column(Boolean, nullable=False, default=False)
    account_id = Column(String, nullable=True)  # cuenta Stripe Connect
    account_active = Column(Boolean, nullable=False, default=False)
    facebook_url = Column(String, nullable=True)
    instagram_url = Column(String, nullable=True)
    twitter_url = Column(String, nullable=True)
    website_url = Column(String, nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
