"""
Booking endpoints
=================

POST /api/v1/bookings           -- book a ride (guests allowed)
GET  /api/v1/bookings           -- the caller's bookings
GET  /api/v1/bookings/{id}      -- one booking (owner or admin)
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, Response
from fastapi.responses import JSONResponse

from limoservice.api.dependencies import (
    get_booking_service,
    get_current_user,
    get_optional_user,
)
from limoservice.api.middleware import limiter
from limoservice.api.schemas import (
    BookingCreatedResponse,
    BookingCreateRequest,
    BookingResponse,
    ErrorResponse,
)
from limoservice.config import settings
from limoservice.infrastructure.models import UserModel
from limoservice.services.bookings import BookingService

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post(
    "",
    status_code=201,
    response_model=BookingCreatedResponse,
    summary="Book a ride",
    description=(
        "Prices the trip ($85 airport transfer or $100 city ride), stores it "
        "as pending and alerts the admin.  Card bookings get a Stripe "
        "Checkout URL in ``redirect_url``."
    ),
    responses={
        200: {"description": "Replay of an earlier request with the same Idempotency-Key."},
        502: {"model": ErrorResponse, "description": "Stripe rejected the checkout."},
    },
)
@limiter.limit(settings.rate_limit)
async def create_booking(
    request: Request,
    response: Response,
    body: BookingCreateRequest,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key", max_length=64),
    user: Optional[UserModel] = Depends(get_optional_user),
    service: BookingService = Depends(get_booking_service),
):
    result = await service.create_booking(
        user=user,
        pickup_location=body.pickup_location,
        dropoff_location=body.dropoff_location,
        pickup_time=body.date_time,
        num_passengers=body.passengers,
        contact_name=body.contact_name,
        contact_email=body.contact_email,
        contact_phone=body.contact_phone,
        payment_method=body.payment_method,
        custom_message=body.custom_message,
        user_timezone=body.user_timezone,
        idempotency_key=idempotency_key,
    )

    # Returned rather than raised so the failed payment status is committed
    if not result.success:
        return JSONResponse(
            status_code=502,
            content={"detail": result.message, "booking_id": result.booking.id},
        )

    if result.replayed:
        response.status_code = 200
    return BookingCreatedResponse(
        success=True,
        message=result.message,
        booking=BookingResponse.model_validate(result.booking),
        redirect_url=result.redirect_url,
    )


@router.get(
    "",
    response_model=list[BookingResponse],
    summary="List the signed-in customer's bookings",
)
@limiter.limit(settings.rate_limit)
async def list_bookings(
    request: Request,
    user: UserModel = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return await service.list_for_user(user)


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get one booking",
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def get_booking(
    request: Request,
    booking_id: str,
    user: UserModel = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return await service.get_for_user(booking_id, user)
