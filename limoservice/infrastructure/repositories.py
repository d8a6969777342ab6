"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.
"""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import BookingModel, UserModel
from limoservice.domain.enums import BookingStatus


class BookingRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, booking: BookingModel) -> BookingModel:
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def save(self, booking: BookingModel) -> BookingModel:
        await self.session.flush()
        return booking

    async def commit(self) -> None:
        await self.session.commit()

    async def get_by_id(self, booking_id: str) -> Optional[BookingModel]:
        return await self.session.get(BookingModel, booking_id)

    async def get_by_idempotency_key(self, key: str) -> Optional[BookingModel]:
        result = await self.session.execute(
            select(BookingModel).where(BookingModel.idempotency_key == key)
        )
        return result.scalar_one_or_none()

    async def get_by_checkout_session(self, session_id: str) -> Optional[BookingModel]:
        result = await self.session.execute(
            select(BookingModel).where(
                BookingModel.stripe_checkout_session_id == session_id
            )
        )
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: str) -> list[BookingModel]:
        result = await self.session.execute(
            select(BookingModel)
            .where(BookingModel.user_id == user_id)
            .order_by(BookingModel.pickup_time.desc())
        )
        return list(result.scalars().all())

    async def search(
        self,
        statuses: Iterable[BookingStatus] = (),
        query: str | None = None,
    ) -> list[BookingModel]:
        """Admin dashboard listing: optional status subset + free-text search."""
        stmt = select(BookingModel)
        statuses = [BookingStatus(s) for s in statuses]
        if statuses:
            stmt = stmt.where(BookingModel.status.in_(statuses))
        if query and query.strip():
            term = query.strip().lower()
            term = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            pattern = f"%{term}%"
            stmt = stmt.where(
                or_(
                    func.lower(BookingModel.contact_name).like(pattern, escape="\\"),
                    func.lower(BookingModel.contact_email).like(pattern, escape="\\"),
                    func.lower(BookingModel.contact_phone).like(pattern, escape="\\"),
                    func.lower(BookingModel.pickup_location).like(pattern, escape="\\"),
                    func.lower(BookingModel.dropoff_location).like(pattern, escape="\\"),
                )
            )
        result = await self.session.execute(
            stmt.order_by(BookingModel.created_at.desc())
        )
        return list(result.scalars().all())

    async def published_reviews(self, limit: int = 20) -> list[BookingModel]:
        result = await self.session.execute(
            select(BookingModel)
            .where(
                BookingModel.review_is_published.is_(True),
                BookingModel.review_rating.is_not(None),
            )
            .order_by(BookingModel.reviewed_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_by_status(self) -> dict[str, int]:
        result = await self.session.execute(
            select(BookingModel.status, func.count()).group_by(BookingModel.status)
        )
        return {BookingStatus(s).value: n for s, n in result.all()}


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, user: UserModel) -> UserModel:
        self.session.add(user)
        await self.session.flush()
        return user

    async def get_by_id(self, user_id: str) -> Optional[UserModel]:
        return await self.session.get(UserModel, user_id)

    async def get_by_email(self, email: str) -> Optional[UserModel]:
        result = await self.session.execute(
            select(UserModel).where(func.lower(UserModel.email) == email.lower())
        )
        return result.scalar_one_or_none()
