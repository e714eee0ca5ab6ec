"""SQLAlchemy ORM models for the SolveStay marketplace.

All models use SQLite-compatible types:
- String(36) for UUID primary keys
- JSON for structured data (no JSONB, no ARRAY)
- DateTime for timestamps, written as UTC
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from solvestay.infra.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class Profile(Base):
    """Platform user: identity, role and owner verification state."""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    role = Column(String(20), nullable=False, default="customer", index=True)  # customer, owner, admin
    is_verified = Column(Boolean, nullable=False, default=False)
    verification_status = Column(String(20), nullable=True, index=True)  # pending, verified, rejected
    verification_documents = Column(JSON, default=list)
    verification_rejection_reason = Column(Text, nullable=True)
    whatsapp_number = Column(String(50), nullable=True)
    bio = Column(Text, nullable=True)
    company_name = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    notification_email = Column(Boolean, nullable=False, default=True)
    notification_sms = Column(Boolean, nullable=False, default=False)
    notification_push = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)
    last_seen_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    properties = relationship("Property", back_populates="owner")


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


class Property(Base):
    """A listing. ``status`` is moderated by admins; only approved + active rows are public."""

    __tablename__ = "properties"

    id = Column(String(36), primary_key=True, default=_uuid)
    owner_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    property_type = Column(String(20), nullable=False, default="apartment")
    listing_type = Column(String(20), nullable=False, default="rent")
    price = Column(Float, nullable=False)
    price_negotiable = Column(Boolean, nullable=False, default=False)
    security_deposit = Column(Float, nullable=True)
    maintenance_charge = Column(Float, nullable=True)
    area_sqft = Column(Float, nullable=True)
    carpet_area = Column(Float, nullable=True)
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Integer, nullable=True)
    balconies = Column(Integer, nullable=True)
    furnishing = Column(String(30), nullable=True)
    floor_number = Column(Integer, nullable=True)
    total_floors = Column(Integer, nullable=True)
    facing = Column(String(30), nullable=True)
    age_of_property = Column(Integer, nullable=True)
    possession_status = Column(String(30), nullable=False, default="ready")
    available_from = Column(Date, nullable=True)
    address = Column(String(500), nullable=False)
    locality = Column(String(150), nullable=True)
    city = Column(String(100), nullable=False, index=True)
    state = Column(String(100), nullable=True)
    pincode = Column(String(20), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    amenities = Column(JSON, default=list)
    images = Column(JSON, default=list)
    images_360 = Column(JSON, default=list)
    video_url = Column(String(500), nullable=True)
    virtual_tour_url = Column(String(500), nullable=True)
    pg_details = Column(JSON, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    is_featured = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=False)
    views_count = Column(Integer, nullable=False, default=0)
    contacts_count = Column(Integer, nullable=False, default=0)
    favorites_count = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="pending", index=True)
    rejection_reason = Column(Text, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    owner = relationship("Profile", back_populates="properties")


class PropertyView(Base):
    """One public detail-page view of a listing."""

    __tablename__ = "property_views"

    id = Column(String(36), primary_key=True, default=_uuid)
    property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    viewer_id = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    viewer_ip = Column(String(64), nullable=True)
    viewed_at = Column(DateTime, default=utcnow)


class Favorite(Base):
    __tablename__ = "favorites"
    __table_args__ = (UniqueConstraint("user_id", "property_id", name="uq_favorites_user_property"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    property = relationship("Property")


# ---------------------------------------------------------------------------
# Subscriptions / payments
# ---------------------------------------------------------------------------


class Subscription(Base):
    """Contact-reveal quota record. ``contacts_limit == -1`` is unlimited."""

    __tablename__ = "subscriptions"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    plan_type = Column(String(20), nullable=False)
    plan_name = Column(String(100), nullable=False)
    price = Column(Float, nullable=False)
    contacts_limit = Column(Integer, nullable=False)
    contacts_used = Column(Integer, nullable=False, default=0)
    starts_at = Column(DateTime, default=utcnow)
    expires_at = Column(DateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    razorpay_subscription_id = Column(String(100), nullable=True)
    expiry_warning_sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)


class Transaction(Base):
    """Payment attempt for a subscription plan."""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    subscription_id = Column(String(36), ForeignKey("subscriptions.id"), nullable=True)
    razorpay_order_id = Column(String(100), unique=True, nullable=True)
    razorpay_payment_id = Column(String(100), nullable=True)
    razorpay_signature = Column(String(255), nullable=True)
    amount = Column(Float, nullable=False)
    currency = Column(String(10), nullable=False, default="INR")
    status = Column(String(20), nullable=False, default="pending")
    payment_method = Column(String(50), nullable=True)
    description = Column(String(255), nullable=True)
    metadata_ = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class ContactReveal(Base):
    """Owner contact details disclosed to a customer, at most once per (customer, property)."""

    __tablename__ = "contact_reveals"
    __table_args__ = (UniqueConstraint("customer_id", "property_id", name="uq_contact_reveals_customer_property"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    customer_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    owner_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    subscription_id = Column(String(36), ForeignKey("subscriptions.id"), nullable=True)
    revealed_phone = Column(String(50), nullable=True)
    revealed_email = Column(String(255), nullable=True)
    revealed_whatsapp = Column(String(50), nullable=True)
    revealed_at = Column(DateTime, default=utcnow)

    owner = relationship("Profile", foreign_keys=[owner_id])


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class Chat(Base):
    """Conversation between one customer and a listing's owner."""

    __tablename__ = "chats"
    __table_args__ = (UniqueConstraint("property_id", "customer_id", name="uq_chats_property_customer"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    property_id = Column(String(36), ForeignKey("properties.id", ondelete="SET NULL"), nullable=True)
    customer_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    owner_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    last_message = Column(Text, nullable=True)
    last_message_at = Column(DateTime, nullable=True)
    last_message_by = Column(String(36), nullable=True)
    customer_unread = Column(Integer, nullable=False, default=0)
    owner_unread = Column(Integer, nullable=False, default=0)
    is_blocked = Column(Boolean, nullable=False, default=False)
    blocked_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=utcnow)

    property = relationship("Property")
    customer = relationship("Profile", foreign_keys=[customer_id])
    owner = relationship("Profile", foreign_keys=[owner_id])


class Message(Base):
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=_uuid)
    chat_id = Column(String(36), ForeignKey("chats.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    content = Column(Text, nullable=False)
    message_type = Column(String(20), nullable=False, default="text")
    image_url = Column(String(500), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)

    sender = relationship("Profile")


# ---------------------------------------------------------------------------
# Visits
# ---------------------------------------------------------------------------


class VisitRequest(Base):
    """Customer proposal to view a property, confirmed or rejected by the owner."""

    __tablename__ = "visit_requests"

    id = Column(String(36), primary_key=True, default=_uuid)
    property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    owner_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    preferred_date = Column(Date, nullable=False)
    preferred_time = Column(String(20), nullable=False)
    alternate_date = Column(Date, nullable=True)
    alternate_time = Column(String(20), nullable=True)
    notes = Column(Text, nullable=True)
    customer_phone = Column(String(50), nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    owner_message = Column(Text, nullable=True)
    confirmed_date = Column(Date, nullable=True)
    confirmed_time = Column(String(20), nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    property = relationship("Property")
    customer = relationship("Profile", foreign_keys=[customer_id])
    owner = relationship("Profile", foreign_keys=[owner_id])


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class Notification(Base):
    """In-app notification row, also pushed over the realtime channel."""

    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    type = Column(String(40), nullable=False, default="general")
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    link = Column(String(500), nullable=True)
    image_url = Column(String(500), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime, nullable=True)
    metadata_ = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, default=utcnow, index=True)
