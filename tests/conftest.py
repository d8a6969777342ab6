"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  Redis, Stripe and SMTP are replaced with
``unittest.mock`` doubles that tests can inspect and reprogram.
"""

import json
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from limoservice.domain.enums import (
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    ServiceType,
    UserRole,
)
from limoservice.infrastructure.database import Base
from limoservice.infrastructure.mailer import Mailer
from limoservice.infrastructure.models import BookingModel, UserModel
from limoservice.infrastructure.payments import (
    CheckoutSession,
    StripeGateway,
    TipIntent,
)
from limoservice.infrastructure.security import hash_password
from limoservice.services.accounts import AccountService

# ── Test DB (SQLite in-memory) ────────────────────────────────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

# bcrypt is slow; hash once for every seeded account
PASSWORD = "correct-horse-battery"
PASSWORD_HASH = hash_password(PASSWORD)


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh schema per test; StaticPool keeps one shared connection."""
    engine = create_async_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ── Vendor doubles ────────────────────────────────────────────────────


@pytest.fixture
def redis():
    mock_redis = AsyncMock()
    mock_redis.set = AsyncMock(return_value=True)
    mock_redis.eval = AsyncMock(return_value=1)
    mock_redis.exists = AsyncMock(return_value=0)
    mock_redis.delete = AsyncMock(return_value=1)
    return mock_redis


@pytest.fixture
def mailer():
    mock_mailer = MagicMock(spec=Mailer)
    mock_mailer.send = AsyncMock(return_value=True)
    return mock_mailer


@pytest.fixture
def gateway():
    gw = MagicMock(spec=StripeGateway)
    gw.create_checkout_session = AsyncMock(
        return_value=CheckoutSession(
            id="cs_test_a1B2c3", url="https://checkout.stripe.com/c/pay/cs_test_a1B2c3"
        )
    )
    gw.create_tip_intent = AsyncMock(
        return_value=TipIntent(
            id="pi_3Qtip", client_secret="pi_3Qtip_secret_9xY", status="requires_payment_method"
        )
    )
    gw.retrieve_intent_status = AsyncMock(return_value="succeeded")
    gw.cancel_intent = AsyncMock(return_value=None)
    gw.verify_event = MagicMock(side_effect=lambda payload, signature: json.loads(payload))
    return gw


# ── Seed helpers ──────────────────────────────────────────────────────


async def make_user(
    session: AsyncSession,
    *,
    name: str = "Elena Ramirez",
    email: str = "elena.ramirez@gmail.com",
    role: UserRole = UserRole.USER,
) -> UserModel:
    user = UserModel(name=name, email=email, password_hash=PASSWORD_HASH, role=role)
    session.add(user)
    await session.commit()
    return user


async def make_booking(session: AsyncSession, user: UserModel | None = None, **overrides) -> BookingModel:
    fields = dict(
        user_id=user.id if user else None,
        pickup_location="DFW International Airport, Terminal D",
        dropoff_location="The Adolphus Hotel, Dallas",
        pickup_time=datetime.now(timezone.utc) + timedelta(days=1),
        num_passengers=2,
        contact_name=user.name if user else "Priya Shah",
        contact_email=user.email if user else "priya.shah@gmail.com",
        contact_phone="+1 214 555 0142",
        car_type="2019 Cadillac Escalade",
        service_type=ServiceType.AIRPORT_TRANSFER,
        flat_rate_amount=85.0,
        total_price=85.0,
        status=BookingStatus.PENDING,
        payment_method=PaymentMethod.CASH,
        payment_status=PaymentStatus.PENDING_CASH,
    )
    fields.update(overrides)
    booking = BookingModel(**fields)
    session.add(booking)
    await session.commit()
    return booking


def auth_headers(user: UserModel) -> dict[str, str]:
    return {"Authorization": f"Bearer {AccountService.issue_token(user)}"}


@pytest_asyncio.fixture
async def customer(db_session) -> UserModel:
    return await make_user(db_session)


@pytest_asyncio.fixture
async def admin(db_session) -> UserModel:
    return await make_user(
        db_session, name="Dispatch Admin", email="dispatch@vip4dfw.com", role=UserRole.ADMIN
    )


# ── App client ────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def client(session_factory, redis, mailer, gateway) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient over the real app with DB, Redis, SMTP and Stripe overridden."""
    from limoservice.api.app import create_app
    from limoservice.api.dependencies import (
        get_db,
        get_mailer,
        get_payment_gateway,
        get_redis,
    )
    from limoservice.api.middleware import limiter

    async def _test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db] = _test_db
    app.dependency_overrides[get_redis] = lambda: redis
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    limiter.enabled = False

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    limiter.enabled = True
