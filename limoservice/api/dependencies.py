"""FastAPI dependency injection helpers."""

from typing import Optional

import redis.asyncio as aioredis
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from limoservice.domain.enums import UserRole
from limoservice.infrastructure.database import async_session_factory
from limoservice.infrastructure.mailer import Mailer, get_mailer
from limoservice.infrastructure.models import UserModel
from limoservice.infrastructure.payments import StripeGateway, get_payment_gateway
from limoservice.infrastructure.redis_client import get_redis, is_token_revoked
from limoservice.infrastructure.repositories import UserRepository
from limoservice.infrastructure.security import InvalidToken, decode_access_token
from limoservice.services.accounts import AccountService
from limoservice.services.bookings import BookingService
from limoservice.services.notifications import Notifier
from limoservice.services.tips import TipService
from limoservice.services.webhooks import StripeWebhookHandler

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/signin", auto_error=False)


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def _unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_token_claims(
    token: Optional[str] = Depends(oauth2_scheme),
    redis: aioredis.Redis = Depends(get_redis),
) -> Optional[dict]:
    """Decoded access-token claims, or ``None`` for anonymous callers."""
    if not token:
        return None
    try:
        claims = decode_access_token(token)
    except InvalidToken:
        raise _unauthorized("Invalid or expired token")
    if await is_token_revoked(redis, claims["jti"]):
        raise _unauthorized("Token has been revoked")
    return claims


async def get_optional_user(
    claims: Optional[dict] = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db),
) -> Optional[UserModel]:
    if claims is None:
        return None
    user = await UserRepository(db).get_by_id(claims["sub"])
    if user is None:
        raise _unauthorized()
    return user


async def get_current_user(
    user: Optional[UserModel] = Depends(get_optional_user),
) -> UserModel:
    if user is None:
        raise _unauthorized("You must be logged in.")
    return user


async def require_admin(user: UserModel = Depends(get_current_user)) -> UserModel:
    if UserRole(user.role) is not UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


def get_notifier(mailer: Mailer = Depends(get_mailer)) -> Notifier:
    return Notifier(mailer)


def get_booking_service(
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    gateway: StripeGateway = Depends(get_payment_gateway),
    redis: aioredis.Redis = Depends(get_redis),
) -> BookingService:
    return BookingService(db, notifier, gateway, redis)


def get_tip_service(
    db: AsyncSession = Depends(get_db),
    gateway: StripeGateway = Depends(get_payment_gateway),
) -> TipService:
    return TipService(db, gateway)


def get_webhook_handler(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
    tips: TipService = Depends(get_tip_service),
) -> StripeWebhookHandler:
    return StripeWebhookHandler(db, redis, tips)


def get_account_service(
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> AccountService:
    return AccountService(db, notifier)
