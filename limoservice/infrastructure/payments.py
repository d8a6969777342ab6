"""
Stripe integration.

* Fares paid by card go through a hosted **Checkout Session**; the
  ``checkout.session.completed`` webhook marks the booking paid.
* Tips use a **PaymentIntent** confirmed client-side with Stripe Elements,
  then confirmed server-side (API call or ``payment_intent.succeeded``).

The SDK is synchronous; every call runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

import stripe

from limoservice.config import Settings, settings
from limoservice.domain.pricing import to_minor_units

logger = logging.getLogger(__name__)


class PaymentProviderError(Exception):
    """A Stripe API call failed."""


class WebhookVerificationError(Exception):
    """Webhook payload or signature could not be verified."""


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: Optional[str]


@dataclass(frozen=True)
class TipIntent:
    id: str
    client_secret: str
    status: str


class StripeGateway:
    def __init__(self, config: Settings = settings):
        self.config = config
        stripe.api_key = config.stripe_secret_key

    async def _call(self, fn, *args, **kwargs):
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except stripe.StripeError as exc:
            logger.error("Stripe error: %s", exc)
            message = getattr(exc, "user_message", None) or str(exc)
            raise PaymentProviderError(message) from exc

    async def create_checkout_session(
        self,
        *,
        booking_id: str,
        user_id: Optional[str],
        amount: float,
        name: str,
        description: str,
        customer_email: str,
    ) -> CheckoutSession:
        base = self.config.site_url.rstrip("/")
        metadata = {"booking_id": booking_id}
        if user_id:
            metadata["user_id"] = user_id
        session = await self._call(
            stripe.checkout.Session.create,
            payment_method_types=["card"],
            line_items=[
                {
                    "price_data": {
                        "currency": self.config.currency,
                        "product_data": {"name": name, "description": description},
                        "unit_amount": to_minor_units(amount),
                    },
                    "quantity": 1,
                }
            ],
            mode="payment",
            success_url=f"{base}/dashboard?payment_success=true&booking_id={booking_id}",
            cancel_url=f"{base}/dashboard?payment_cancelled=true&booking_id={booking_id}",
            metadata=metadata,
            customer_email=customer_email,
        )
        return CheckoutSession(id=session.id, url=session.url)

    async def create_tip_intent(self, *, booking_id: str, amount: float) -> TipIntent:
        intent = await self._call(
            stripe.PaymentIntent.create,
            amount=to_minor_units(amount),
            currency=self.config.currency,
            automatic_payment_methods={"enabled": True},
            metadata={"bookingId": booking_id, "type": "tip"},
            description=f"Tip for booking {booking_id}",
        )
        return TipIntent(id=intent.id, client_secret=intent.client_secret, status=intent.status)

    async def retrieve_intent_status(self, intent_id: str) -> str:
        intent = await self._call(stripe.PaymentIntent.retrieve, intent_id)
        return intent.status

    async def cancel_intent(self, intent_id: str) -> None:
        await self._call(stripe.PaymentIntent.cancel, intent_id)

    def verify_event(self, payload: bytes, signature: str) -> dict[str, Any]:
        """Check the ``stripe-signature`` header and return the event dict."""
        secret = self.config.stripe_webhook_secret
        try:
            text = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(text, signature, secret)
            return json.loads(text)
        except (stripe.SignatureVerificationError, ValueError) as exc:
            raise WebhookVerificationError(str(exc)) from exc


def get_payment_gateway() -> StripeGateway:
    return StripeGateway()
