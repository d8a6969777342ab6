"""
Stripe webhook
==============

POST /api/v1/stripe/webhook -- signed payment events from Stripe
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from limoservice.api.dependencies import get_webhook_handler
from limoservice.api.schemas import ErrorResponse, WebhookResponse
from limoservice.infrastructure.payments import (
    StripeGateway,
    WebhookVerificationError,
    get_payment_gateway,
)
from limoservice.services.webhooks import StripeWebhookHandler, WebhookProcessingError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stripe", tags=["webhooks"])


@router.post(
    "/webhook",
    response_model=WebhookResponse,
    summary="Receive Stripe events",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def stripe_webhook(
    request: Request,
    gateway: StripeGateway = Depends(get_payment_gateway),
    handler: StripeWebhookHandler = Depends(get_webhook_handler),
):
    signature = request.headers.get("stripe-signature")
    if not signature:
        raise HTTPException(status_code=400, detail="No stripe-signature header found")

    payload = await request.body()
    try:
        event = gateway.verify_event(payload, signature)
    except WebhookVerificationError as exc:
        logger.warning("Webhook signature verification failed: %s", exc)
        raise HTTPException(status_code=400, detail=f"Webhook Error: {exc}")

    logger.info("Stripe event %s received (%s)", event.get("id"), event.get("type"))
    try:
        outcome = await handler.handle(event)
    except WebhookProcessingError as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return WebhookResponse(outcome=outcome)
