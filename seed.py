"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 1 admin account   (admin@vip4dfw.com / ADMIN_PASSWORD or "admin-password")
  - 3 customer accounts (password "password123")
  - 8 sample bookings (mix of pending, confirmed, completed, declined,
    cancelled; cash and card; two published reviews and one tip)
"""

import asyncio
import os
from datetime import datetime, timedelta, timezone

from sqlalchemy import text

from limoservice.config import settings
from limoservice.domain.entities import Booking
from limoservice.domain.enums import (
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    TipStatus,
    UserRole,
)
from limoservice.infrastructure.database import async_session_factory, engine
from limoservice.infrastructure.models import BookingModel, UserModel
from limoservice.infrastructure.security import hash_password
from limoservice.services.bookings import pricing_engine

USERS = [
    {"name": "Marcus Whitfield", "email": "marcus.whitfield@gmail.com"},
    {"name": "Elena Ramirez", "email": "elena.ramirez@outlook.com"},
    {"name": "Jordan Okafor", "email": "jordan.okafor@yahoo.com"},
]

NOW = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)

BOOKINGS = [
    {
        "user": 0,
        "pickup": "DFW International Airport, Terminal D",
        "dropoff": "The Adolphus Hotel, 1321 Commerce St, Dallas",
        "when": NOW + timedelta(days=2),
        "passengers": 2,
        "method": PaymentMethod.CARD,
        "status": BookingStatus.PENDING,
        "payment": PaymentStatus.UNPAID,
    },
    {
        "user": 1,
        "pickup": "Highland Park Village, Dallas",
        "dropoff": "AT&T Stadium, Arlington",
        "when": NOW + timedelta(days=1, hours=3),
        "passengers": 6,
        "method": PaymentMethod.CASH,
        "status": BookingStatus.CONFIRMED,
        "payment": PaymentStatus.PENDING_CASH,
        "driver": (32.8340, -96.8050),
    },
    {
        "user": 2,
        "pickup": "Dallas Love Field",
        "dropoff": "Omni Fort Worth Hotel",
        "when": NOW + timedelta(hours=5),
        "passengers": 3,
        "method": PaymentMethod.CARD,
        "status": BookingStatus.CONFIRMED,
        "payment": PaymentStatus.PAID,
    },
    {
        "user": 0,
        "pickup": "Uptown Dallas, McKinney Ave",
        "dropoff": "DFW International Airport, Terminal E",
        "when": NOW - timedelta(days=10),
        "passengers": 1,
        "method": PaymentMethod.CARD,
        "status": BookingStatus.COMPLETED,
        "payment": PaymentStatus.PAID,
        "review": (5, "Spotless Escalade and a very professional chauffeur. Will book again."),
        "published": True,
        "tip": 20.0,
    },
    {
        "user": 1,
        "pickup": "Dallas Love Field",
        "dropoff": "Bishop Arts District, Dallas",
        "when": NOW - timedelta(days=6),
        "passengers": 4,
        "method": PaymentMethod.CASH,
        "status": BookingStatus.COMPLETED,
        "payment": PaymentStatus.PAID,
        "review": (4, "On time and smooth ride from the airport."),
        "published": True,
    },
    {
        "user": 2,
        "pickup": "Frisco Star, Frisco",
        "dropoff": "Klyde Warren Park, Dallas",
        "when": NOW - timedelta(days=3),
        "passengers": 8,
        "method": PaymentMethod.CASH,
        "status": BookingStatus.COMPLETED,
        "payment": PaymentStatus.PENDING_CASH,
    },
    {
        "user": None,
        "guest": ("Priya Shah", "priya.shah@gmail.com", "+1 214 555 0142"),
        "pickup": "Plano Legacy West",
        "dropoff": "Dallas Love Field",
        "when": NOW + timedelta(days=4),
        "passengers": 2,
        "method": PaymentMethod.CASH,
        "status": BookingStatus.DECLINED,
        "payment": PaymentStatus.PENDING_CASH,
    },
    {
        "user": 0,
        "pickup": "DFW International Airport, Terminal A",
        "dropoff": "Southlake Town Square",
        "when": NOW + timedelta(days=7),
        "passengers": 2,
        "method": PaymentMethod.CARD,
        "status": BookingStatus.CANCELLED,
        "payment": PaymentStatus.FAILED,
        "reason": "Flight rescheduled by the customer.",
    },
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM users"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Users ─────────────────────────────────────────────────────
        admin = UserModel(
            name=f"{settings.site_name} Admin",
            email=settings.admin_email,
            password_hash=hash_password(os.environ.get("ADMIN_PASSWORD", "admin-password")),
            role=UserRole.ADMIN,
        )
        session.add(admin)

        customer_hash = hash_password("password123")
        user_models = []
        for u in USERS:
            m = UserModel(
                name=u["name"],
                email=u["email"],
                password_hash=customer_hash,
                role=UserRole.USER,
            )
            session.add(m)
            user_models.append(m)
        await session.flush()
        print(f"  Created 1 admin and {len(user_models)} customers")

        # ── Bookings ──────────────────────────────────────────────────
        pricing = pricing_engine()
        for b in BOOKINGS:
            quote = pricing.quote(b["pickup"], b["dropoff"])
            if b["user"] is None:
                name, email, phone = b["guest"]
                user_id = None
            else:
                owner = user_models[b["user"]]
                name, email, phone = owner.name, owner.email, "+1 972 555 0100"
                user_id = owner.id

            booking = BookingModel(
                user_id=user_id,
                pickup_location=b["pickup"],
                dropoff_location=b["dropoff"],
                pickup_time=b["when"],
                num_passengers=b["passengers"],
                contact_name=name,
                contact_email=email,
                contact_phone=phone,
                car_type=settings.default_car_type,
                service_type=quote.service_type,
                flat_rate_amount=quote.flat_rate_amount,
                total_price=quote.total_price,
                status=b["status"],
                payment_method=b["method"],
                payment_status=b.get("payment", Booking.initial_payment_status(b["method"])),
                cancellation_reason=b.get("reason"),
            )
            if "driver" in b:
                booking.driver_latitude, booking.driver_longitude = b["driver"]
                booking.driver_location_updated_at = NOW
            if "review" in b:
                booking.review_rating, booking.review_message = b["review"]
                booking.review_is_published = b.get("published", False)
                booking.reviewed_at = b["when"] + timedelta(days=1)
            if "tip" in b:
                booking.tip_amount = b["tip"]
                booking.tip_status = TipStatus.PAID
            session.add(booking)
        await session.flush()
        print(f"  Created {len(BOOKINGS)} bookings")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
