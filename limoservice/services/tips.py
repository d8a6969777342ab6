"""
Post-trip tipping.

A tip is a standalone Stripe PaymentIntent tagged ``type=tip``.  The
booking tracks ``tip_amount``, ``tip_status`` and the intent id:

    (none | failed | cancelled) --create--> pending --confirm--> paid
                                            pending --cancel---> cancelled
                                            pending --webhook--> failed
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from limoservice.domain.enums import TipStatus
from limoservice.infrastructure.models import BookingModel, UserModel
from limoservice.infrastructure.payments import StripeGateway, TipIntent
from limoservice.infrastructure.repositories import BookingRepository
from limoservice.services.bookings import is_owner
from limoservice.services.errors import BookingNotFound, InvalidRequest, TipIntentMismatch

logger = logging.getLogger(__name__)


class TipService:
    def __init__(self, session: AsyncSession, gateway: StripeGateway):
        self.repo = BookingRepository(session)
        self.gateway = gateway

    async def _owned(self, booking_id: str, user: UserModel) -> BookingModel:
        booking = await self.repo.get_by_id(booking_id)
        if booking is None or not is_owner(booking, user):
            raise BookingNotFound(booking_id)
        return booking

    async def create_tip(
        self, booking_id: str, user: UserModel, amount: float
    ) -> tuple[BookingModel, TipIntent]:
        booking = await self._owned(booking_id, user)
        if not booking.can_tip():
            raise InvalidRequest(
                "Tips can only be added to completed rides without an existing tip."
            )
        intent = await self.gateway.create_tip_intent(booking_id=booking.id, amount=amount)
        booking.tip_amount = round(amount, 2)
        booking.tip_status = TipStatus.PENDING
        booking.tip_payment_intent_id = intent.id
        await self.repo.save(booking)
        logger.info("Tip intent %s created for booking %s ($%.2f)", intent.id, booking.id, amount)
        return booking, intent

    async def confirm_tip(
        self,
        booking_id: str,
        payment_intent_id: str,
        user: Optional[UserModel] = None,
        verified: bool = False,
    ) -> BookingModel:
        """Mark the tip paid.

        ``verified`` is set by the webhook, whose signed event already proves
        the intent succeeded; the API path re-checks the intent at Stripe.
        """
        if user is not None:
            booking = await self._owned(booking_id, user)
        else:
            booking = await self.repo.get_by_id(booking_id)
            if booking is None:
                raise BookingNotFound(booking_id)

        if booking.tip_payment_intent_id != payment_intent_id:
            raise TipIntentMismatch("Payment does not match this booking's tip.")
        if booking.tip_status is not None and TipStatus(booking.tip_status) is TipStatus.PAID:
            return booking

        if not verified:
            status = await self.gateway.retrieve_intent_status(payment_intent_id)
            if status != "succeeded":
                raise InvalidRequest(f"Tip payment has not completed (status: {status}).")

        booking.tip_status = TipStatus.PAID
        await self.repo.save(booking)
        logger.info("Tip for booking %s confirmed (%s)", booking.id, payment_intent_id)
        return booking

    async def cancel_tip(self, booking_id: str, user: UserModel) -> BookingModel:
        booking = await self._owned(booking_id, user)
        if booking.tip_status is None or TipStatus(booking.tip_status) is not TipStatus.PENDING:
            raise InvalidRequest("There is no pending tip to cancel.")
        await self.gateway.cancel_intent(booking.tip_payment_intent_id)
        booking.tip_status = TipStatus.CANCELLED
        await self.repo.save(booking)
        return booking

    async def mark_failed(self, booking_id: str, payment_intent_id: str) -> BookingModel:
        booking = await self.repo.get_by_id(booking_id)
        if booking is None:
            raise BookingNotFound(booking_id)
        if booking.tip_payment_intent_id == payment_intent_id and booking.tip_status != TipStatus.PAID:
            booking.tip_status = TipStatus.FAILED
            await self.repo.save(booking)
            logger.info("Tip for booking %s marked failed", booking.id)
        return booking
