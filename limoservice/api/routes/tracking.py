"""
Ride tracking
=============

GET /api/v1/track/{id} -- trip summary and, while the booking is confirmed,
the driver's last shared location.  Clients poll every few seconds.
"""

from fastapi import APIRouter, Depends, Request

from limoservice.api.dependencies import get_booking_service
from limoservice.api.middleware import limiter
from limoservice.api.schemas import ErrorResponse, TrackingResponse
from limoservice.config import settings
from limoservice.domain.enums import BookingStatus
from limoservice.services.bookings import BookingService

router = APIRouter(prefix="/track", tags=["tracking"])


@router.get(
    "/{booking_id}",
    response_model=TrackingResponse,
    summary="Track a ride",
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def track_booking(
    request: Request,
    booking_id: str,
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.get(booking_id)
    status = BookingStatus(booking.status)

    tracking = TrackingResponse(
        id=booking.id,
        pickup_location=booking.pickup_location,
        dropoff_location=booking.dropoff_location,
        pickup_time=booking.pickup_time,
        car_type=booking.car_type,
        status=status,
        poll_interval_seconds=settings.tracking_poll_seconds,
    )
    if status is BookingStatus.CONFIRMED:
        tracking.driver_latitude = booking.driver_latitude
        tracking.driver_longitude = booking.driver_longitude
        tracking.driver_location_updated_at = booking.driver_location_updated_at
    return tracking
