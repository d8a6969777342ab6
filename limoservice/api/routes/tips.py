"""
Tipping endpoints
=================

POST /api/v1/bookings/{id}/tip          -- start a tip PaymentIntent
POST /api/v1/bookings/{id}/tip/confirm  -- mark the tip paid once Stripe agrees
POST /api/v1/bookings/{id}/tip/cancel   -- abandon a pending tip
"""

from fastapi import APIRouter, Depends, Request

from limoservice.api.dependencies import get_current_user, get_tip_service
from limoservice.api.middleware import limiter
from limoservice.api.schemas import (
    BookingResponse,
    ErrorResponse,
    TipConfirmRequest,
    TipCreateRequest,
    TipIntentResponse,
)
from limoservice.config import settings
from limoservice.infrastructure.models import UserModel
from limoservice.services.tips import TipService

router = APIRouter(prefix="/bookings/{booking_id}/tip", tags=["tips"])

_errors = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    502: {"model": ErrorResponse, "description": "Stripe call failed."},
}


@router.post(
    "",
    status_code=201,
    response_model=TipIntentResponse,
    summary="Add a tip to a completed ride",
    responses=_errors,
)
@limiter.limit(settings.rate_limit)
async def create_tip(
    request: Request,
    booking_id: str,
    body: TipCreateRequest,
    user: UserModel = Depends(get_current_user),
    tips: TipService = Depends(get_tip_service),
):
    booking, intent = await tips.create_tip(booking_id, user, body.amount)
    return TipIntentResponse(
        booking_id=booking.id,
        amount=booking.tip_amount,
        payment_intent_id=intent.id,
        client_secret=intent.client_secret,
    )


@router.post(
    "/confirm",
    response_model=BookingResponse,
    summary="Confirm a tip payment",
    responses=_errors,
)
@limiter.limit(settings.rate_limit)
async def confirm_tip(
    request: Request,
    booking_id: str,
    body: TipConfirmRequest,
    user: UserModel = Depends(get_current_user),
    tips: TipService = Depends(get_tip_service),
):
    return await tips.confirm_tip(booking_id, body.payment_intent_id, user=user)


@router.post(
    "/cancel",
    response_model=BookingResponse,
    summary="Cancel a pending tip",
    responses=_errors,
)
@limiter.limit(settings.rate_limit)
async def cancel_tip(
    request: Request,
    booking_id: str,
    user: UserModel = Depends(get_current_user),
    tips: TipService = Depends(get_tip_service),
):
    return await tips.cancel_tip(booking_id, user)
