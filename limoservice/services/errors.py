"""Application-level errors raised by the service layer.

The exception handlers in ``limoservice.api.app`` translate these to HTTP
status codes.
"""


class BookingNotFound(LookupError):
    def __init__(self, booking_id: str):
        super().__init__(f"Booking {booking_id} not found")
        self.booking_id = booking_id


class ReviewNotFound(LookupError):
    pass


class InvalidRequest(ValueError):
    """Well-formed request that the current booking state cannot satisfy."""


class BookingBusy(RuntimeError):
    """Another writer holds the booking lock."""


class TipIntentMismatch(InvalidRequest):
    """The payment intent is not the booking's current tip intent."""
