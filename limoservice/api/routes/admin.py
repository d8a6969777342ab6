"""
Admin dashboard endpoints
=========================

GET   /api/v1/admin/bookings                          -- filter / search bookings
GET   /api/v1/admin/bookings/counts                   -- bookings per status
PATCH /api/v1/admin/bookings/{id}/status              -- confirm, decline, cancel, complete
PATCH /api/v1/admin/bookings/{id}/payment-status      -- payment reconciliation
PUT   /api/v1/admin/bookings/{id}/driver-location     -- share driver location
POST  /api/v1/admin/bookings/{id}/review/publication  -- show / hide a review
GET   /api/v1/admin/health                            -- simple health check
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from limoservice.api.dependencies import get_booking_service, require_admin
from limoservice.api.middleware import limiter
from limoservice.api.schemas import (
    AdminBookingResponse,
    DriverLocationRequest,
    ErrorResponse,
    HealthResponse,
    PaymentStatusUpdateRequest,
    ReviewPublicationResponse,
    StatusCountsResponse,
    StatusUpdateRequest,
)
from limoservice.config import settings
from limoservice.domain.enums import BookingStatus
from limoservice.services.bookings import BookingService

router = APIRouter(prefix="/admin", tags=["admin"])

_admin = [Depends(require_admin)]


@router.get(
    "/bookings",
    response_model=list[AdminBookingResponse],
    dependencies=_admin,
    summary="Filter and search all bookings",
)
@limiter.limit(settings.rate_limit)
async def list_bookings(
    request: Request,
    status: list[BookingStatus] = Query(default=[]),
    search: Optional[str] = Query(None, max_length=200),
    service: BookingService = Depends(get_booking_service),
):
    return await service.search(status, search)


@router.get(
    "/bookings/counts",
    response_model=StatusCountsResponse,
    dependencies=_admin,
    summary="Number of bookings in each status",
)
@limiter.limit(settings.rate_limit)
async def booking_counts(
    request: Request,
    service: BookingService = Depends(get_booking_service),
):
    counts = await service.status_counts()
    return StatusCountsResponse(counts=counts, total=sum(counts.values()))


@router.patch(
    "/bookings/{booking_id}/status",
    response_model=AdminBookingResponse,
    dependencies=_admin,
    summary="Move a booking through its lifecycle",
    description=(
        "pending -> confirmed | declined, confirmed -> completed | cancelled. "
        "The customer is emailed about the change."
    ),
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def update_status(
    request: Request,
    booking_id: str,
    body: StatusUpdateRequest,
    service: BookingService = Depends(get_booking_service),
):
    return await service.update_status(booking_id, body.status, body.cancellation_reason)


@router.patch(
    "/bookings/{booking_id}/payment-status",
    response_model=AdminBookingResponse,
    dependencies=_admin,
    summary="Reconcile a booking's payment status",
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def update_payment_status(
    request: Request,
    booking_id: str,
    body: PaymentStatusUpdateRequest,
    service: BookingService = Depends(get_booking_service),
):
    return await service.update_payment_status(booking_id, body.payment_status)


@router.put(
    "/bookings/{booking_id}/driver-location",
    response_model=AdminBookingResponse,
    dependencies=_admin,
    summary="Share the driver's current location",
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def update_driver_location(
    request: Request,
    booking_id: str,
    body: DriverLocationRequest,
    service: BookingService = Depends(get_booking_service),
):
    return await service.update_driver_location(booking_id, body.latitude, body.longitude)


@router.post(
    "/bookings/{booking_id}/review/publication",
    response_model=ReviewPublicationResponse,
    dependencies=_admin,
    summary="Publish or hide a booking's review on the homepage",
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def toggle_review_publication(
    request: Request,
    booking_id: str,
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.toggle_review_publication(booking_id)
    return ReviewPublicationResponse(
        booking_id=booking.id,
        is_published=booking.review_is_published,
        message="Review published." if booking.review_is_published else "Review hidden.",
    )


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
