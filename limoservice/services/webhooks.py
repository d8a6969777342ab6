"""
Stripe webhook processing
=========================

Handled events
--------------
* ``checkout.session.completed``        -> booking payment ``paid``
* ``checkout.session.expired`` /
  ``checkout.session.async_payment_failed`` -> ``failed`` (if still unpaid)
* ``payment_intent.succeeded`` (tip)     -> tip ``paid``
* ``payment_intent.payment_failed`` (tip) -> tip ``failed``

Each event id is claimed in Redis before processing so Stripe's retries
and duplicate deliveries are applied once.  Changes are committed before
the response goes out; a failed run (commit included) releases the claim
so the retry is processed.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import redis.asyncio as aioredis
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from limoservice.config import Settings, settings
from limoservice.domain.enums import PaymentStatus
from limoservice.infrastructure.models import BookingModel
from limoservice.infrastructure.redis_client import claim_once
from limoservice.infrastructure.repositories import BookingRepository
from limoservice.services.errors import BookingNotFound, InvalidRequest, TipIntentMismatch
from limoservice.services.tips import TipService

logger = logging.getLogger(__name__)

TIP = "tip"


class WebhookProcessingError(Exception):
    """The event is valid but could not be applied; Stripe should retry."""


def _metadata(obj: dict[str, Any]) -> dict[str, Any]:
    return obj.get("metadata") or {}


class StripeWebhookHandler:
    def __init__(
        self,
        session: AsyncSession,
        redis: aioredis.Redis,
        tips: TipService,
        config: Settings = settings,
    ):
        self.repo = BookingRepository(session)
        self.redis = redis
        self.tips = tips
        self.config = config

    async def handle(self, event: dict[str, Any]) -> str:
        """Apply *event*; returns a short outcome string for the response."""
        event_id = event.get("id")
        event_type = event.get("type", "unknown")
        key = f"stripe-event:{event_id}"

        if event_id and not await claim_once(
            self.redis, key, self.config.webhook_dedup_ttl_seconds
        ):
            logger.info("Duplicate Stripe event %s (%s) ignored", event_id, event_type)
            return "duplicate"

        try:
            outcome = await self._dispatch(event_type, event["data"]["object"])
            await self.repo.commit()
        except SQLAlchemyError as exc:
            if event_id:
                await self.redis.delete(key)
            logger.error("Could not store Stripe event %s: %s", event_id, exc)
            raise WebhookProcessingError(f"Failed to store event {event_id}") from exc
        except Exception:
            if event_id:
                await self.redis.delete(key)
            raise
        return outcome

    async def _dispatch(self, event_type: str, obj: dict[str, Any]) -> str:
        if event_type == "checkout.session.completed":
            return await self._checkout_completed(obj)
        if event_type in ("checkout.session.expired", "checkout.session.async_payment_failed"):
            return await self._checkout_failed(obj)
        if event_type == "payment_intent.succeeded":
            return await self._tip_succeeded(obj)
        if event_type == "payment_intent.payment_failed":
            return await self._tip_failed(obj)
        logger.info("Unhandled event type %s", event_type)
        return "ignored"

    async def _checkout_booking(self, obj: dict[str, Any]) -> Optional[BookingModel]:
        meta = _metadata(obj)
        booking_id = meta.get("booking_id") or meta.get("bookingId")
        if booking_id:
            return await self.repo.get_by_id(booking_id)
        if obj.get("id"):
            return await self.repo.get_by_checkout_session(obj["id"])
        return None

    async def _checkout_completed(self, obj: dict[str, Any]) -> str:
        booking = await self._checkout_booking(obj)
        if booking is None:
            logger.warning("Checkout session %s has no matching booking", obj.get("id"))
            return "ignored"
        if obj.get("payment_status", "paid") != "paid":
            logger.info(
                "Checkout session %s completed but payment is %s",
                obj.get("id"),
                obj.get("payment_status"),
            )
            return "ignored"
        if booking.set_payment_status(PaymentStatus.PAID):
            await self.repo.save(booking)
            logger.info("Booking %s paid via checkout session %s", booking.id, obj.get("id"))
        return "processed"

    async def _checkout_failed(self, obj: dict[str, Any]) -> str:
        booking = await self._checkout_booking(obj)
        if booking is None:
            logger.warning("Checkout session %s has no matching booking", obj.get("id"))
            return "ignored"
        if PaymentStatus(booking.payment_status) is PaymentStatus.UNPAID:
            booking.set_payment_status(PaymentStatus.FAILED)
            await self.repo.save(booking)
            logger.info("Booking %s checkout failed or expired", booking.id)
        return "processed"

    async def _tip_succeeded(self, obj: dict[str, Any]) -> str:
        meta = _metadata(obj)
        booking_id = meta.get("bookingId")
        if not booking_id or meta.get("type") != TIP:
            logger.warning("Payment intent succeeded event missing bookingId or type metadata.")
            return "ignored"
        try:
            await self.tips.confirm_tip(booking_id, obj["id"], verified=True)
        except TipIntentMismatch:
            # Superseded intent, e.g. one left behind by a cancelled tip
            logger.warning("Tip intent %s is not current for booking %s", obj["id"], booking_id)
            return "ignored"
        except (BookingNotFound, InvalidRequest) as exc:
            logger.error("Failed to confirm tip payment for %s: %s", booking_id, exc)
            raise WebhookProcessingError(f"Failed to confirm tip payment: {exc}") from exc
        return "processed"

    async def _tip_failed(self, obj: dict[str, Any]) -> str:
        meta = _metadata(obj)
        booking_id = meta.get("bookingId")
        if not booking_id or meta.get("type") != TIP:
            logger.warning("Payment intent failed event missing bookingId or type metadata.")
            return "ignored"
        try:
            await self.tips.mark_failed(booking_id, obj["id"])
        except BookingNotFound as exc:
            logger.error("Failed to update tip status for %s: %s", booking_id, exc)
            raise WebhookProcessingError(f"Failed to update booking tip status: {exc}") from exc
        return "processed"
