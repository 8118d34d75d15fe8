"""
shared/schemas/schemas.py
All Pydantic v2 request/response schemas for the platform.
Wire format is camelCase to match the stored documents.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from shared.models.models import UserRole


# ── Base ──────────────────────────────────────────────────────

class BaseSchema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


class DocumentSchema(BaseSchema):
    """Response built from a stored document; ``_id`` is exposed as ``id``."""
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    created_at: Optional[datetime] = None


class MessageResponse(BaseSchema):
    message: str


class InsertResponse(BaseSchema):
    inserted: bool
    id: Optional[str] = None
    message: Optional[str] = None


# ── Auth / User ───────────────────────────────────────────────

class MeResponse(BaseSchema):
    email: str
    role: str
    registered: bool


class UserRegisterRequest(BaseSchema):
    name: Optional[str] = Field(None, max_length=255)
    photo_url: Optional[str] = Field(None, alias="photoURL")


class UserResponse(DocumentSchema):
    email: str
    name: Optional[str] = None
    photo_url: Optional[str] = Field(None, alias="photoURL")
    role: str
    blocked: bool = False


class RoleResponse(BaseSchema):
    role: str


class RoleUpdateRequest(BaseSchema):
    role: UserRole


class BlockUpdateRequest(BaseSchema):
    blocked: bool


# ── Decorator Applications ────────────────────────────────────

class DecoratorApplyRequest(BaseSchema):
    name: str = Field(..., min_length=2, max_length=255)
    phone: str = Field(..., min_length=5, max_length=20)
    nid: str = Field(..., min_length=4, max_length=50)
    experience: str = Field(..., max_length=2000)


class ApplicationResponse(DocumentSchema):
    name: str
    email: str
    phone: str
    nid: str
    experience: str
    status: str
    approved_at: Optional[datetime] = None


# ── Bookings ──────────────────────────────────────────────────

class BookingCreateRequest(BaseSchema):
    """Any owner/payment fields a client sends are ignored."""
    service_type: str = Field(..., min_length=1, max_length=100)
    event_type: str = Field(..., min_length=1, max_length=100)
    date: str = Field(..., min_length=1, max_length=50)
    time: Optional[str] = Field(None, max_length=50)
    location: str = Field(..., min_length=1, max_length=500)
    user_name: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = Field(None, max_length=2000)


class BookingResponse(DocumentSchema):
    user_email: str
    user_name: Optional[str] = None
    service_type: str
    event_type: str
    date: Optional[str] = None
    time: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    payment_status: str
    decorator_email: Optional[str] = None


# ── Payments ──────────────────────────────────────────────────

class PaymentRequest(BaseSchema):
    """Presence and positivity are checked by the payment processor (400, not 422)."""
    booking_id: Optional[str] = None
    amount: Optional[float] = None
    transaction_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class PaymentResponse(DocumentSchema):
    booking_id: str
    amount: float
    transaction_id: Optional[str] = None
    user_email: str


class PaymentIntentRequest(BaseSchema):
    amount: float = Field(..., gt=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)


class PaymentIntentResponse(BaseSchema):
    client_secret: str


# ── Services (work orders) ────────────────────────────────────

class ServiceAssignRequest(BaseSchema):
    booking_id: str
    decorator_email: EmailStr
    decorator_name: Optional[str] = Field(None, max_length=255)
    decorator_phone: Optional[str] = Field(None, max_length=20)
    service_type: Optional[str] = Field(None, max_length=100)


class ServiceStatusUpdateRequest(BaseSchema):
    status: str


class CashOutRequest(BaseSchema):
    tracking_number: Optional[str] = Field(None, max_length=100)


class ServiceResponse(DocumentSchema):
    booking_id: str
    service_type: Optional[str] = None
    decorator_email: str
    decorator_name: Optional[str] = None
    decorator_phone: Optional[str] = None
    price: float = 0
    status: str


# ── Tracking ──────────────────────────────────────────────────

class TrackingEventResponse(DocumentSchema):
    booking_id: str
    status: str
    email: str
    cost: Optional[float] = None
    tracking_number: Optional[str] = None
