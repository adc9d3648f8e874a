"""
shared/models/models.py
All SQLAlchemy ORM models for the Capture Studio booking platform.
UUID primary keys throughout; embedded sub-documents (booking snapshots,
histories, line items, form fields) are JSON columns (JSONB on PostgreSQL).
"""

import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from config.database import Base

# JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Enumerations ──────────────────────────────────────────────

class UserRole(str, PyEnum):
    CLIENT = "Client"
    SERVICE_PROVIDER = "Service Provider"
    ADMIN = "Admin"


class AccountStatus(str, PyEnum):
    PENDING = "Pending"
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class BookingStatus(str, PyEnum):
    BOOKED = "Booked"
    IN_PROGRESS = "In Progress"
    DELIVERABLES_READY = "Deliverables Ready"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class AssignmentStatus(str, PyEnum):
    REQUESTED = "Requested"
    ACCEPTED = "Accepted"
    COMPLETED = "Completed"
    REJECTED = "Rejected"


class PaymentStatus(str, PyEnum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"


class TicketPriority(str, PyEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class TicketStatus(str, PyEnum):
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


# ── Mixins ────────────────────────────────────────────────────

class TimestampMixin:
    """Adds created_at and updated_at to any model."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


# ── Association tables ────────────────────────────────────────

wishlist_items = Table(
    "wishlist_items",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("package_id", Uuid, ForeignKey("packages.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), default=utcnow, nullable=False),
)


# ── Models ────────────────────────────────────────────────────

class User(TimestampMixin, Base):
    """Account for clients, service providers and admins. Never hard-deleted."""
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    fullname: Mapped[str] = mapped_column(String(255), nullable=False)
    contact: Mapped[str] = mapped_column(String(20), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole), nullable=False, default=UserRole.CLIENT
    )
    status: Mapped[Optional[AccountStatus]] = mapped_column(
        Enum(AccountStatus), nullable=True
    )
    date_of_birth: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    aadhar_card: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    pan_card: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    profile_image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cover_image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    partner_profile: Mapped[Optional["ServicePartner"]] = relationship(
        back_populates="user", uselist=False, lazy="selectin"
    )
    wishlist: Mapped[List["Package"]] = relationship(
        secondary=wishlist_items, lazy="selectin", order_by=wishlist_items.c.created_at
    )
    bookings: Mapped[List["Booking"]] = relationship(back_populates="user")
    notifications: Mapped[List["Notification"]] = relationship(
        back_populates="user", foreign_keys="Notification.user_id"
    )
    support_tickets: Mapped[List["SupportTicket"]] = relationship(back_populates="user")

    __table_args__ = (
        Index("ix_users_email_role", "email", "role"),
        Index("ix_users_contact_role", "contact", "role"),
        Index("ix_users_role", "role"),
    )

    @property
    def partner_id(self) -> Optional[uuid.UUID]:
        return self.partner_profile.id if self.partner_profile else None

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"


class ServicePartner(TimestampMixin, Base):
    """
    Business profile of a Service Provider. One-to-one with its User;
    the partner's status is mirrored onto the user's account status.
    """
    __tablename__ = "service_partners"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    registration_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    contact_person: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    business_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    employees: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    experience: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    projects: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    bank_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    account_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    ifsc: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    status: Mapped[AccountStatus] = mapped_column(
        Enum(AccountStatus), nullable=False, default=AccountStatus.PENDING
    )

    user: Mapped["User"] = relationship(back_populates="partner_profile")
    bookings: Mapped[List["Booking"]] = relationship(back_populates="service_partner")

    __table_args__ = (Index("ix_service_partners_status", "status"),)


class Service(TimestampMixin, Base):
    """Top level of the catalog, e.g. Photography, Videography."""
    __tablename__ = "services"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    events: Mapped[List["Event"]] = relationship(
        back_populates="service", order_by="Event.created_at"
    )


class Event(TimestampMixin, Base):
    """An event type offered under a service, e.g. Wedding, Birthday."""
    __tablename__ = "events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("services.id"), nullable=False
    )
    event_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    service: Mapped["Service"] = relationship(back_populates="events")
    packages: Mapped[List["Package"]] = relationship(
        back_populates="event", order_by="Package.created_at"
    )
    form: Mapped[Optional["Form"]] = relationship(back_populates="event", uselist=False)

    __table_args__ = (Index("ix_events_service_id", "service_id"),)

    @property
    def form_id(self) -> Optional[uuid.UUID]:
        return self.form.id if self.form else None

    @property
    def package_ids(self) -> List[uuid.UUID]:
        return [p.id for p in self.packages]


class Package(TimestampMixin, Base):
    """Priced offering for one event of one service."""
    __tablename__ = "packages"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("services.id"), nullable=False
    )
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    booking_price: Mapped[Optional[float]] = mapped_column(
        Numeric(12, 2, asdecimal=False), nullable=True
    )
    card_details: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)
    # e.g. [{"product_name": "Album", "quantity": 2}, ...]
    package_details: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)
    # e.g. [{"title": "Coverage", "subtitle": ["Candid", "Traditional"]}, ...]
    bill_details: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)
    # e.g. [{"type": "Base", "amount": 9000}, ...]
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    event: Mapped["Event"] = relationship(back_populates="packages")

    __table_args__ = (
        Index("ix_packages_event_id", "event_id"),
        Index("ix_packages_service_id", "service_id"),
    )


class Form(TimestampMixin, Base):
    """Custom booking form attached to one event type."""
    __tablename__ = "forms"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    form_title: Mapped[str] = mapped_column(String(255), nullable=False)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id"), unique=True, nullable=False
    )
    fields: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)
    # e.g. [{"name": "bride", "label": "Bride", "type": "text",
    #        "required": true, "component": "input", "options": []}, ...]

    event: Mapped["Event"] = relationship(back_populates="form")


class Booking(TimestampMixin, Base):
    """
    Aggregate root of the booking flow.
    Fulfillment: Booked → In Progress → Deliverables Ready → Completed | Cancelled
    Assignment:  Requested → Accepted | Rejected → Completed
    Both histories are JSON lists; status_history grows at the end,
    assigned_status_history at the front.
    """
    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_no: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    ordered: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Snapshots captured from the booking form
    basic_info: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    form_details: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    event_details: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    delivery_address: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    package_details: Mapped[dict] = mapped_column(JSONType, nullable=False)

    # {installment, paymentMethod, payablePrice, paidAmount, dueAmount,
    #  paymentType, paymentStatus, paymentDate}
    payment_details: Mapped[dict] = mapped_column(JSONType, nullable=False)

    # Fulfillment
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus), nullable=False, default=BookingStatus.BOOKED
    )
    status_history: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    # Partner assignment
    service_partner_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("service_partners.id"), nullable=True
    )
    assigned_status: Mapped[Optional[AssignmentStatus]] = mapped_column(
        Enum(AssignmentStatus), nullable=True
    )
    assigned_status_history: Mapped[list] = mapped_column(
        JSONType, default=list, nullable=False
    )

    agree_to_terms: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    confirm_booking_details: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    # Relationships
    user: Mapped["User"] = relationship(back_populates="bookings")
    service_partner: Mapped[Optional["ServicePartner"]] = relationship(
        back_populates="bookings"
    )
    invoices: Mapped[List["Invoice"]] = relationship(
        back_populates="booking", order_by="Invoice.invoice_no"
    )

    __table_args__ = (
        Index("ix_bookings_user_id", "user_id"),
        Index("ix_bookings_service_partner_id", "service_partner_id"),
        Index("ix_bookings_status", "status"),
    )


class Invoice(TimestampMixin, Base):
    """
    One record per payment event against a booking.
    payment_type: 1 = first payment, 2 = second installment, 3 = final settlement.
    Only payment_status may change after creation.
    """
    __tablename__ = "invoices"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    invoice_no: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bookings.id"), nullable=False
    )
    payment_type: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)
    payable_price: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    paid_amount: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    due_amount: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    payment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING
    )
    razorpay_order_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    razorpay_payment_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    booking: Mapped["Booking"] = relationship(back_populates="invoices")

    __table_args__ = (Index("ix_invoices_booking_id", "booking_id"),)


class Counter(Base):
    """Named monotonic counter backing booking and invoice numbers."""
    __tablename__ = "counters"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Notification(Base):
    """In-app notification for a user. Read newest first, trimmed on push."""
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    sender_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    redirect_path: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    user: Mapped["User"] = relationship(back_populates="notifications", foreign_keys=[user_id])

    __table_args__ = (Index("ix_notifications_user_created", "user_id", "created_at"),)


class Banner(Base):
    """Homepage banner slot, unique by display index."""
    __tablename__ = "banners"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    image: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    subtitle: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    index: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)


class SupportTicket(TimestampMixin, Base):
    """User-filed support request."""
    __tablename__ = "support_tickets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[TicketPriority] = mapped_column(
        Enum(TicketPriority), nullable=False, default=TicketPriority.LOW
    )
    status: Mapped[TicketStatus] = mapped_column(
        Enum(TicketStatus), nullable=False, default=TicketStatus.OPEN
    )
    image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    user: Mapped["User"] = relationship(back_populates="support_tickets")

    __table_args__ = (Index("ix_support_tickets_user_id", "user_id"),)
