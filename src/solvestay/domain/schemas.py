"""Pydantic v2 schemas for API request/response validation."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Auth / profiles
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Schema for self-service signup. Admin accounts are created out of band."""

    email: str
    password: str = Field(min_length=6)
    full_name: str | None = None
    phone: str | None = None
    role: str = "customer"


class LoginRequest(BaseModel):
    email: str
    password: str


class ProfileResponse(BaseModel):
    """Schema for profile API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: str | None = None
    phone: str | None = None
    avatar_url: str | None = None
    role: str
    is_verified: bool
    verification_status: str | None = None
    verification_documents: list[str] | None = None
    verification_rejection_reason: str | None = None
    whatsapp_number: str | None = None
    bio: str | None = None
    company_name: str | None = None
    city: str | None = None
    notification_email: bool = True
    notification_sms: bool = False
    notification_push: bool = True
    created_at: datetime | None = None


class ProfileUpdate(BaseModel):
    """Schema for the caller's own settings page."""

    full_name: str | None = None
    phone: str | None = None
    whatsapp_number: str | None = None
    bio: str | None = None
    company_name: str | None = None
    city: str | None = None
    avatar_url: str | None = None
    notification_email: bool | None = None
    notification_sms: bool | None = None
    notification_push: bool | None = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: ProfileResponse


class OwnerCard(BaseModel):
    """Public view of a listing owner. Carries no contact fields."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str | None = None
    avatar_url: str | None = None
    company_name: str | None = None
    is_verified: bool = False


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


class PropertyWrite(BaseModel):
    """Fields an owner may set on create and update."""

    title: str = Field(min_length=1)
    description: str | None = None
    property_type: str = "apartment"
    listing_type: str = "rent"
    price: float
    price_negotiable: bool = False
    security_deposit: float | None = None
    maintenance_charge: float | None = None
    area_sqft: float | None = None
    carpet_area: float | None = None
    bedrooms: int | None = None
    bathrooms: int | None = None
    balconies: int | None = None
    furnishing: str | None = None
    floor_number: int | None = None
    total_floors: int | None = None
    facing: str | None = None
    age_of_property: int | None = None
    possession_status: str = "ready"
    available_from: date | None = None
    address: str = Field(min_length=1)
    locality: str | None = None
    city: str = Field(min_length=1)
    state: str | None = None
    pincode: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    amenities: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    images_360: list[str] = Field(default_factory=list)
    video_url: str | None = None
    virtual_tour_url: str | None = None
    pg_details: dict | None = None

    @field_validator("images_360", mode="before")
    @classmethod
    def _coerce_images_360(cls, value):
        # Older clients send a single URL or null
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value else []
        return value


class PropertyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    title: str
    description: str | None = None
    property_type: str
    listing_type: str
    price: float
    price_negotiable: bool = False
    security_deposit: float | None = None
    maintenance_charge: float | None = None
    area_sqft: float | None = None
    carpet_area: float | None = None
    bedrooms: int | None = None
    bathrooms: int | None = None
    balconies: int | None = None
    furnishing: str | None = None
    floor_number: int | None = None
    total_floors: int | None = None
    facing: str | None = None
    age_of_property: int | None = None
    possession_status: str | None = None
    available_from: date | None = None
    address: str
    locality: str | None = None
    city: str
    state: str | None = None
    pincode: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    amenities: list[str] | None = None
    images: list[str] | None = None
    images_360: list[str] | None = None
    video_url: str | None = None
    virtual_tour_url: str | None = None
    pg_details: dict | None = None
    is_verified: bool
    is_featured: bool
    is_active: bool
    views_count: int
    contacts_count: int
    favorites_count: int
    status: str
    rejection_reason: str | None = None
    approved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PropertyDetailResponse(PropertyResponse):
    owner: OwnerCard | None = None


class PropertyListResponse(BaseModel):
    properties: list[PropertyResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class RejectRequest(BaseModel):
    reason: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Favorites / contacts
# ---------------------------------------------------------------------------


class FavoriteCreate(BaseModel):
    property_id: str
    notes: str | None = None


class ContactRevealRequest(BaseModel):
    property_id: str


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class ChatCreate(BaseModel):
    property_id: str


class ChatResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    property_id: str | None = None
    customer_id: str
    owner_id: str
    last_message: str | None = None
    last_message_at: datetime | None = None
    last_message_by: str | None = None
    customer_unread: int
    owner_unread: int
    is_blocked: bool
    created_at: datetime | None = None


class MessageCreate(BaseModel):
    chat_id: str
    content: str = Field(min_length=1)
    message_type: str = "text"
    image_url: str | None = None


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    chat_id: str
    sender_id: str
    content: str
    message_type: str
    image_url: str | None = None
    is_read: bool
    read_at: datetime | None = None
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Visits
# ---------------------------------------------------------------------------


class VisitCreate(BaseModel):
    property_id: str
    preferred_date: date
    preferred_time: str
    alternate_date: date | None = None
    alternate_time: str | None = None
    notes: str | None = None
    customer_phone: str | None = None


class VisitUpdate(BaseModel):
    status: str
    owner_message: str | None = None
    confirmed_date: date | None = None
    confirmed_time: str | None = None


class VisitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    property_id: str
    customer_id: str
    owner_id: str
    preferred_date: date
    preferred_time: str
    alternate_date: date | None = None
    alternate_time: str | None = None
    notes: str | None = None
    customer_phone: str | None = None
    status: str
    owner_message: str | None = None
    confirmed_date: date | None = None
    confirmed_time: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


class CreateOrderRequest(BaseModel):
    plan_type: str


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class SubscriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    plan_type: str
    plan_name: str
    price: float
    contacts_limit: int
    contacts_used: int
    starts_at: datetime | None = None
    expires_at: datetime
    is_active: bool


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    type: str
    title: str
    message: str
    link: str | None = None
    image_url: str | None = None
    is_read: bool
    read_at: datetime | None = None
    metadata: dict | None = Field(default=None, validation_alias="metadata_")
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


class VerifyOwnerRequest(BaseModel):
    """Admin decision on an owner's verification documents."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    action: str
    rejection_reason: str | None = Field(default=None, alias="rejectionReason")


class RoleUpdate(BaseModel):
    role: str


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
