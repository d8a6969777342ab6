"""Domain enumerations and state-transition rules."""

import enum


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# State machine: maps current status -> set of valid next statuses
BOOKING_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.DECLINED},
    BookingStatus.CONFIRMED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.DECLINED: set(),
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}


class PaymentStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PENDING_CASH = "pending_cash"
    PAID = "paid"
    FAILED = "failed"


PAYMENT_TRANSITIONS: dict[PaymentStatus, set[PaymentStatus]] = {
    PaymentStatus.UNPAID: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.PENDING_CASH: {PaymentStatus.PAID},
    PaymentStatus.FAILED: {PaymentStatus.PAID},
    PaymentStatus.PAID: set(),
}


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"


class ServiceType(str, enum.Enum):
    AIRPORT_TRANSFER = "airport_transfer"
    CITY_RIDE = "city_ride"


class TipStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


def payment_status_label(status: PaymentStatus | str | None) -> str:
    """Human label shown on the dashboards."""
    if status is None:
        return "N/A"
    value = PaymentStatus(status)
    if value is PaymentStatus.PENDING_CASH:
        return "Cash on Arrival"
    if value is PaymentStatus.PAID:
        return "Credit Card (Paid)"
    return value.value.replace("_", " ")
