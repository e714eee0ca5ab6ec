"""Domain enumerations for the SolveStay marketplace.

All enums use the (str, Enum) pattern to ensure JSON serialization compatibility.
"""

from enum import Enum


class UserRole(str, Enum):
    """Role attached to every profile."""

    CUSTOMER = "customer"
    OWNER = "owner"
    ADMIN = "admin"


class VerificationStatus(str, Enum):
    """Owner verification review state (NULL when never submitted)."""

    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class PropertyType(str, Enum):
    HOUSE = "house"
    APARTMENT = "apartment"
    PG = "pg"
    LAND = "land"
    VILLA = "villa"
    COMMERCIAL = "commercial"
    PLOT = "plot"


class ListingType(str, Enum):
    SALE = "sale"
    RENT = "rent"
    LEASE = "lease"


class FurnishingType(str, Enum):
    UNFURNISHED = "unfurnished"
    SEMI_FURNISHED = "semi-furnished"
    FULLY_FURNISHED = "fully-furnished"


class PossessionStatus(str, Enum):
    READY = "ready"
    UNDER_CONSTRUCTION = "under_construction"
    UPCOMING = "upcoming"


class PropertyStatus(str, Enum):
    """Moderation status of a listing. Set by admin action."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    DRAFT = "draft"


class SortBy(str, Enum):
    """Listing search orderings."""

    NEWEST = "newest"
    PRICE_LOW = "price_low"
    PRICE_HIGH = "price_high"
    POPULAR = "popular"


class SubscriptionPlanType(str, Enum):
    DAY = "day"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    REFUNDED = "refunded"


class MessageType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    FILE = "file"
    SYSTEM = "system"


class VisitStatus(str, Enum):
    """Lifecycle of a visit request."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class VisitActor(str, Enum):
    """Who is driving a visit-request transition."""

    CUSTOMER = "customer"
    OWNER = "owner"


class NotificationType(str, Enum):
    MESSAGE = "message"
    PROPERTY_APPROVED = "property_approved"
    PROPERTY_REJECTED = "property_rejected"
    SUBSCRIPTION_EXPIRING = "subscription_expiring"
    PAYMENT_SUCCESS = "payment_success"
    VISIT_REQUEST = "visit_request"
    VISIT_UPDATE = "visit_update"
    NEW_PROPERTY_MATCH = "new_property_match"
    REVIEW = "review"
    GENERAL = "general"
