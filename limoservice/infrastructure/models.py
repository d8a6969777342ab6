"""
SQLAlchemy ORM models  (maps to PostgreSQL).

Tables
------
* ``users``     -- customer and admin accounts
* ``bookings``  -- ride reservations, with payment, review, tip and
  driver-location columns

Indexes
-------
* **B-Tree** on ``status``, ``user_id``, ``contact_email``, ``pickup_time``
  and ``idempotency_key`` for the dashboard filters and API look-ups.
"""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)

from .database import Base
from limoservice.domain.entities import BookingRules
from limoservice.domain.enums import (
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    ServiceType,
    TipStatus,
    UserRole,
)


def _new_id() -> str:
    return str(uuid.uuid4())


def _enum(enum_cls, name: str) -> Enum:
    # Persist the lowercase values, not the member names
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
    )


class UserModel(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=True)
    role = Column(_enum(UserRole, "userrole"), default=UserRole.USER, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class BookingModel(BookingRules, Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True)

    pickup_location = Column(String(500), nullable=False)
    dropoff_location = Column(String(500), nullable=False)
    pickup_time = Column(DateTime(timezone=True), nullable=False)
    num_passengers = Column(Integer, default=1, nullable=False)

    contact_name = Column(String(120), nullable=False)
    contact_email = Column(String(255), nullable=False)
    contact_phone = Column(String(40), nullable=False)
    custom_message = Column(Text, nullable=True)
    car_type = Column(String(80), nullable=True)

    service_type = Column(_enum(ServiceType, "servicetype"), nullable=False)
    flat_rate_amount = Column(Float, nullable=True)
    total_price = Column(Float, nullable=False)

    status = Column(
        _enum(BookingStatus, "bookingstatus"),
        default=BookingStatus.PENDING,
        nullable=False,
    )
    payment_method = Column(_enum(PaymentMethod, "paymentmethod"), nullable=False)
    payment_status = Column(
        _enum(PaymentStatus, "paymentstatus"),
        default=PaymentStatus.UNPAID,
        nullable=False,
    )
    stripe_checkout_session_id = Column(String(255), nullable=True)
    idempotency_key = Column(String(64), unique=True, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    # Driver location sharing
    driver_latitude = Column(Float, nullable=True)
    driver_longitude = Column(Float, nullable=True)
    driver_location_updated_at = Column(DateTime(timezone=True), nullable=True)

    # Post-trip review
    review_rating = Column(Integer, nullable=True)
    review_message = Column(Text, nullable=True)
    review_is_published = Column(Boolean, default=False, nullable=False)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    # Tipping
    tip_amount = Column(Float, nullable=True)
    tip_status = Column(_enum(TipStatus, "tipstatus"), nullable=True)
    tip_payment_intent_id = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_bookings_status", "status"),
        Index("idx_bookings_user", "user_id"),
        Index("idx_bookings_contact_email", "contact_email"),
        Index("idx_bookings_pickup_time", "pickup_time"),
        Index("idx_bookings_idempotency", "idempotency_key"),
    )
    # Fetch server-side timestamps with RETURNING; lazy refresh is not
    # available under AsyncSession.
    __mapper_args__ = {"eager_defaults": True}
