"""
Review endpoints
================

POST /api/v1/bookings/{id}/review -- rate a completed ride (owner)
GET  /api/v1/reviews              -- published reviews for the homepage
"""

from fastapi import APIRouter, Depends, Query, Request

from limoservice.api.dependencies import get_booking_service, get_current_user
from limoservice.api.middleware import limiter
from limoservice.api.schemas import (
    BookingResponse,
    ErrorResponse,
    PublicReviewResponse,
    ReviewCreateRequest,
)
from limoservice.config import settings
from limoservice.infrastructure.models import BookingModel, UserModel
from limoservice.services.bookings import BookingService

router = APIRouter(tags=["reviews"])


def first_name(full_name: str) -> str:
    parts = full_name.split()
    return parts[0] if parts else "Guest"


def public_review(booking: BookingModel) -> PublicReviewResponse:
    return PublicReviewResponse(
        rating=booking.review_rating,
        message=booking.review_message,
        author=first_name(booking.contact_name),
        reviewed_at=booking.reviewed_at,
    )


@router.post(
    "/bookings/{booking_id}/review",
    status_code=201,
    response_model=BookingResponse,
    summary="Review a completed ride",
    description="One review per booking.  Reviews stay hidden until an admin publishes them.",
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
@limiter.limit(settings.rate_limit)
async def submit_review(
    request: Request,
    booking_id: str,
    body: ReviewCreateRequest,
    user: UserModel = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return await service.submit_review(booking_id, user, body.rating, body.message)


@router.get(
    "/reviews",
    response_model=list[PublicReviewResponse],
    summary="Published customer reviews",
)
@limiter.limit(settings.rate_limit)
async def list_reviews(
    request: Request,
    limit: int = Query(20, ge=1, le=100),
    service: BookingService = Depends(get_booking_service),
):
    return [public_review(b) for b in await service.published_reviews(limit)]
