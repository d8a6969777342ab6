"""
Booking service
===============

Customer flow
-------------
1. Classify the fare (airport transfer vs. city ride) and convert the
   pickup time to UTC.
2. Persist the booking as ``pending`` with payment status ``pending_cash``
   (cash) or ``unpaid`` (card).
3. Alert the admin by email.
4. Card bookings open a Stripe Checkout Session; the webhook marks them
   paid later.  A Stripe failure keeps the booking and flags the payment
   ``failed``.

Admin flow
----------
Status and payment-status writes run under a per-booking Redis lock and go
through the entity guards in ``limoservice.domain.entities``.  The write is
committed before the lock is released.  Customers are emailed on every
status change.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession

from limoservice.config import Settings, settings
from limoservice.domain.entities import Booking
from limoservice.domain.enums import (
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    UserRole,
)
from limoservice.domain.pricing import PricingEngine
from limoservice.domain.timezones import format_pickup_time, to_utc
from limoservice.infrastructure.locks import DistributedLock
from limoservice.infrastructure.models import BookingModel, UserModel
from limoservice.infrastructure.payments import PaymentProviderError, StripeGateway
from limoservice.infrastructure.repositories import BookingRepository
from limoservice.services.errors import (
    BookingBusy,
    BookingNotFound,
    InvalidRequest,
    ReviewNotFound,
)
from limoservice.services.notifications import Notifier, service_label

logger = logging.getLogger(__name__)


@dataclass
class BookingResult:
    success: bool
    message: str
    booking: BookingModel
    redirect_url: Optional[str] = None
    replayed: bool = False


def pricing_engine(config: Settings = settings) -> PricingEngine:
    return PricingEngine(
        airport_transfer_fare=config.airport_transfer_fare,
        city_ride_fare=config.city_ride_fare,
        airport_keywords=config.airport_keywords,
    )


def is_owner(booking: BookingModel, user: Optional[UserModel]) -> bool:
    return user is not None and booking.user_id == user.id


class BookingService:
    def __init__(
        self,
        session: AsyncSession,
        notifier: Notifier,
        gateway: StripeGateway,
        redis: aioredis.Redis,
        config: Settings = settings,
    ):
        self.repo = BookingRepository(session)
        self.notifier = notifier
        self.gateway = gateway
        self.redis = redis
        self.config = config
        self.pricing = pricing_engine(config)

    # ── Customer ──────────────────────────────────────────────────────

    async def create_booking(
        self,
        *,
        user: Optional[UserModel],
        pickup_location: str,
        dropoff_location: str,
        pickup_time: datetime,
        num_passengers: int,
        contact_name: str,
        contact_email: str,
        contact_phone: str,
        payment_method: PaymentMethod,
        custom_message: Optional[str] = None,
        user_timezone: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> BookingResult:
        if idempotency_key:
            existing = await self.repo.get_by_idempotency_key(idempotency_key)
            if existing:
                same_caller = existing.user_id == (user.id if user else None)
                if not same_caller or existing.contact_email.lower() != contact_email.lower():
                    raise InvalidRequest(
                        "Idempotency-Key was already used for a different booking."
                    )
                return BookingResult(
                    True, "Booking already received.", existing, replayed=True
                )

        pickup_utc = to_utc(pickup_time, user_timezone, self.config.business_timezone)

        quote = self.pricing.quote(pickup_location, dropoff_location)
        payment_method = PaymentMethod(payment_method)

        booking = await self.repo.create(
            BookingModel(
                user_id=user.id if user else None,
                pickup_location=pickup_location,
                dropoff_location=dropoff_location,
                pickup_time=pickup_utc,
                num_passengers=num_passengers,
                contact_name=contact_name,
                contact_email=contact_email,
                contact_phone=contact_phone,
                custom_message=custom_message or None,
                car_type=self.config.default_car_type,
                service_type=quote.service_type,
                flat_rate_amount=quote.flat_rate_amount,
                total_price=quote.total_price,
                status=BookingStatus.PENDING,
                payment_method=payment_method,
                payment_status=Booking.initial_payment_status(payment_method),
                idempotency_key=idempotency_key,
            )
        )
        logger.info(
            "Booking %s created (%s, $%.2f, %s)",
            booking.id,
            quote.service_type.value,
            quote.total_price,
            payment_method.value,
        )

        if not await self.notifier.new_booking_alert(booking):
            logger.warning("Admin alert for booking %s was not delivered", booking.id)

        if payment_method is PaymentMethod.CASH:
            return BookingResult(
                True, "Booking confirmed! Cash payment due upon arrival.", booking
            )

        try:
            checkout = await self.gateway.create_checkout_session(
                booking_id=booking.id,
                user_id=booking.user_id,
                amount=booking.total_price,
                name=(
                    f"{service_label(booking.service_type)} from "
                    f"{booking.pickup_location} to {booking.dropoff_location}"
                ),
                description=(
                    f"For {booking.num_passengers} passengers on "
                    f"{format_pickup_time(booking.pickup_time, user_timezone or self.config.business_timezone)}"
                ),
                customer_email=booking.contact_email,
            )
        except PaymentProviderError as exc:
            booking.set_payment_status(PaymentStatus.FAILED)
            await self.repo.save(booking)
            return BookingResult(False, f"Payment processing error: {exc}", booking)

        booking.stripe_checkout_session_id = checkout.id
        await self.repo.save(booking)
        if not checkout.url:
            return BookingResult(
                False, "Failed to create Stripe checkout session.", booking
            )
        return BookingResult(True, "Redirecting to payment...", booking, checkout.url)

    async def list_for_user(self, user: UserModel) -> list[BookingModel]:
        return await self.repo.list_for_user(user.id)

    async def get(self, booking_id: str) -> BookingModel:
        booking = await self.repo.get_by_id(booking_id)
        if booking is None:
            raise BookingNotFound(booking_id)
        return booking

    async def get_for_user(self, booking_id: str, user: UserModel) -> BookingModel:
        """Owners and admins only; anyone else sees a 404."""
        booking = await self.get(booking_id)
        if not is_owner(booking, user) and UserRole(user.role) is not UserRole.ADMIN:
            raise BookingNotFound(booking_id)
        return booking

    async def submit_review(
        self, booking_id: str, user: UserModel, rating: int, message: Optional[str]
    ) -> BookingModel:
        booking = await self.get(booking_id)
        if not is_owner(booking, user):
            raise BookingNotFound(booking_id)
        if booking.review_rating is not None:
            raise InvalidRequest("This booking has already been reviewed.")
        if not booking.can_review():
            raise InvalidRequest("Only completed rides can be reviewed.")
        booking.review_rating = rating
        booking.review_message = message or None
        booking.review_is_published = False
        booking.reviewed_at = datetime.now(timezone.utc)
        return await self.repo.save(booking)

    async def published_reviews(self, limit: int = 20) -> list[BookingModel]:
        return await self.repo.published_reviews(limit)

    # ── Admin ─────────────────────────────────────────────────────────

    async def search(
        self, statuses: Iterable[BookingStatus] = (), query: Optional[str] = None
    ) -> list[BookingModel]:
        return await self.repo.search(statuses, query)

    async def status_counts(self) -> dict[str, int]:
        counts = await self.repo.count_by_status()
        return {s.value: counts.get(s.value, 0) for s in BookingStatus}

    def _lock(self, booking_id: str) -> DistributedLock:
        return DistributedLock.for_booking(
            self.redis, booking_id, ttl_seconds=self.config.booking_lock_ttl_seconds
        )

    async def update_status(
        self,
        booking_id: str,
        new_status: BookingStatus,
        cancellation_reason: Optional[str] = None,
    ) -> BookingModel:
        lock = self._lock(booking_id)
        if not await lock.acquire():
            raise BookingBusy(f"Booking {booking_id} is being updated")
        try:
            booking = await self.get(booking_id)
            booking.transition_to(new_status)
            if booking.status is BookingStatus.CANCELLED:
                booking.cancellation_reason = cancellation_reason or None
            await self.repo.save(booking)
            # Commit before the lock goes so the next holder reads this write
            await self.repo.commit()
        finally:
            await lock.release()

        logger.info("Booking %s moved to %s", booking.id, booking.status.value)
        if not await self.notifier.status_changed(booking):
            logger.warning(
                "Status email for booking %s (%s) was not delivered",
                booking.id,
                booking.status.value,
            )
        return booking

    async def update_payment_status(
        self, booking_id: str, new_status: PaymentStatus
    ) -> BookingModel:
        lock = self._lock(booking_id)
        if not await lock.acquire():
            raise BookingBusy(f"Booking {booking_id} is being updated")
        try:
            booking = await self.get(booking_id)
            if booking.set_payment_status(new_status):
                logger.info(
                    "Booking %s payment status set to %s by admin",
                    booking.id,
                    booking.payment_status.value,
                )
            await self.repo.save(booking)
            await self.repo.commit()
            return booking
        finally:
            await lock.release()

    async def update_driver_location(
        self, booking_id: str, latitude: float, longitude: float
    ) -> BookingModel:
        booking = await self.get(booking_id)
        if BookingStatus(booking.status) is not BookingStatus.CONFIRMED:
            raise InvalidRequest("Location can only be shared for confirmed bookings.")
        booking.driver_latitude = latitude
        booking.driver_longitude = longitude
        booking.driver_location_updated_at = datetime.now(timezone.utc)
        return await self.repo.save(booking)

    async def toggle_review_publication(self, booking_id: str) -> BookingModel:
        booking = await self.get(booking_id)
        if booking.review_rating is None:
            raise ReviewNotFound(f"Booking {booking_id} has no review")
        booking.review_is_published = not booking.review_is_published
        return await self.repo.save(booking)
