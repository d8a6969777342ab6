"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, computed_field

from limoservice.config import settings
from limoservice.domain.enums import (
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    ServiceType,
    TipStatus,
    UserRole,
    payment_status_label,
)


# ── Requests ──────────────────────────────────────────────────────────


class BookingCreateRequest(BaseModel):
    pickup_location: str = Field(..., min_length=1, max_length=500)
    dropoff_location: str = Field(..., min_length=1, max_length=500)
    date_time: datetime = Field(
        ..., description="Pickup wall-clock time, as entered by the customer."
    )
    user_timezone: Optional[str] = Field(
        None,
        max_length=64,
        description="IANA zone of the customer's browser, e.g. America/Chicago.",
    )
    passengers: int = Field(..., ge=1, le=settings.max_passengers)
    contact_name: str = Field(..., min_length=1, max_length=120)
    contact_email: EmailStr
    contact_phone: str = Field(..., min_length=5, max_length=40)
    custom_message: Optional[str] = Field(None, max_length=2000)
    payment_method: PaymentMethod

    model_config = {"str_strip_whitespace": True}


class StatusUpdateRequest(BaseModel):
    status: BookingStatus
    cancellation_reason: Optional[str] = Field(None, max_length=1000)


class PaymentStatusUpdateRequest(BaseModel):
    payment_status: PaymentStatus


class DriverLocationRequest(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class ReviewCreateRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    message: Optional[str] = Field(None, max_length=2000)

    model_config = {"str_strip_whitespace": True}


class TipCreateRequest(BaseModel):
    amount: float = Field(..., ge=settings.tip_min_amount, le=settings.tip_max_amount)


class TipConfirmRequest(BaseModel):
    payment_intent_id: str = Field(..., min_length=1, max_length=255)


class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)

    model_config = {"str_strip_whitespace": True}


class SigninRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, max_length=72)
    confirm_password: str


# ── Responses ─────────────────────────────────────────────────────────


class BookingResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    pickup_location: str
    dropoff_location: str
    pickup_time: datetime
    num_passengers: int
    contact_name: str
    contact_email: str
    contact_phone: str
    custom_message: Optional[str] = None
    car_type: Optional[str] = None
    service_type: ServiceType
    flat_rate_amount: Optional[float] = None
    total_price: float
    status: BookingStatus
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    cancellation_reason: Optional[str] = None
    review_rating: Optional[int] = None
    review_message: Optional[str] = None
    review_is_published: bool = False
    tip_amount: Optional[float] = None
    tip_status: Optional[TipStatus] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def payment_status_label(self) -> str:
        return payment_status_label(self.payment_status)


class AdminBookingResponse(BookingResponse):
    driver_latitude: Optional[float] = None
    driver_longitude: Optional[float] = None
    driver_location_updated_at: Optional[datetime] = None
    stripe_checkout_session_id: Optional[str] = None


class BookingCreatedResponse(BaseModel):
    success: bool
    message: str
    booking: BookingResponse
    redirect_url: Optional[str] = None


class StatusCountsResponse(BaseModel):
    counts: dict[str, int]
    total: int


class TrackingResponse(BaseModel):
    id: str
    pickup_location: str
    dropoff_location: str
    pickup_time: datetime
    car_type: Optional[str] = None
    status: BookingStatus
    driver_latitude: Optional[float] = None
    driver_longitude: Optional[float] = None
    driver_location_updated_at: Optional[datetime] = None
    poll_interval_seconds: int = settings.tracking_poll_seconds


class PublicReviewResponse(BaseModel):
    rating: int
    message: Optional[str] = None
    author: str
    reviewed_at: Optional[datetime] = None


class ReviewPublicationResponse(BaseModel):
    booking_id: str
    is_published: bool
    message: str


class TipIntentResponse(BaseModel):
    booking_id: str
    amount: float
    payment_intent_id: str
    client_secret: str


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


class WebhookResponse(BaseModel):
    received: bool = True
    outcome: str


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
