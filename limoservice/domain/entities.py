"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``Booking``: enforces the booking lifecycle
  (pending -> confirmed | declined, confirmed -> completed | cancelled)
  and the independent payment-status lifecycle.
- ``BookingRules`` is shared by the plain dataclass and the ORM model so
  every status write goes through the same guard.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .enums import (
    BOOKING_TRANSITIONS,
    PAYMENT_TRANSITIONS,
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    ServiceType,
    TipStatus,
)


class InvalidStateTransition(Exception):
    """Raised when a status change violates the state machine."""


class BookingRules:
    """Lifecycle rules; expects ``status``, ``payment_status``,
    ``review_rating`` and ``tip_status`` attributes on the host."""

    def transition_to(self, new_status: BookingStatus) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        current = BookingStatus(self.status)
        new_status = BookingStatus(new_status)
        if new_status not in BOOKING_TRANSITIONS.get(current, set()):
            raise InvalidStateTransition(
                f"Cannot transition booking from {current.value} to {new_status.value}"
            )
        self.status = new_status

    def set_payment_status(self, new_status: PaymentStatus) -> bool:
        """Apply a payment-status change.

        Returns ``False`` when the status is already *new_status* (webhook
        retries land here), ``True`` when it changed.
        """
        current = PaymentStatus(self.payment_status)
        new_status = PaymentStatus(new_status)
        if current is new_status:
            return False
        if new_status not in PAYMENT_TRANSITIONS.get(current, set()):
            raise InvalidStateTransition(
                f"Cannot change payment status from {current.value} to {new_status.value}"
            )
        self.payment_status = new_status
        return True

    def can_review(self) -> bool:
        return (
            BookingStatus(self.status) is BookingStatus.COMPLETED
            and self.review_rating is None
        )

    def can_tip(self) -> bool:
        if BookingStatus(self.status) is not BookingStatus.COMPLETED:
            return False
        return self.tip_status is None or TipStatus(self.tip_status) in (
            TipStatus.FAILED,
            TipStatus.CANCELLED,
        )


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Booking(BookingRules):
    id: Optional[str] = None
    user_id: Optional[str] = None
    pickup_location: str = ""
    dropoff_location: str = ""
    pickup_time: Optional[datetime] = None
    num_passengers: int = 1
    service_type: ServiceType = ServiceType.CITY_RIDE
    total_price: float = 0.0
    payment_method: PaymentMethod = PaymentMethod.CASH
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING_CASH
    review_rating: Optional[int] = None
    tip_status: Optional[TipStatus] = None

    @staticmethod
    def initial_payment_status(method: PaymentMethod) -> PaymentStatus:
        return (
            PaymentStatus.PENDING_CASH
            if PaymentMethod(method) is PaymentMethod.CASH
            else PaymentStatus.UNPAID
        )
