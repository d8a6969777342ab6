"""Sign-up, sign-in and password reset."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from limoservice.domain.enums import UserRole
from limoservice.infrastructure import security
from limoservice.infrastructure.models import UserModel
from limoservice.infrastructure.repositories import UserRepository
from limoservice.services.notifications import Notifier

logger = logging.getLogger(__name__)


class EmailAlreadyRegistered(Exception):
    pass


class InvalidCredentials(Exception):
    pass


class AccountService:
    def __init__(self, session: AsyncSession, notifier: Optional[Notifier] = None):
        self.users = UserRepository(session)
        self.notifier = notifier

    async def sign_up(self, *, name: str, email: str, password: str) -> UserModel:
        if await self.users.get_by_email(email):
            raise EmailAlreadyRegistered(email)
        user = await self.users.create(
            UserModel(
                name=name,
                email=email.lower(),
                password_hash=await security.hash_password_async(password),
                role=UserRole.USER,
            )
        )
        logger.info("Account created for %s", user.email)
        return user

    async def authenticate(self, email: str, password: str) -> UserModel:
        user = await self.users.get_by_email(email)
        if user is None or not await security.verify_password_async(
            password, user.password_hash
        ):
            logger.info("Failed sign-in for %s", email)
            raise InvalidCredentials()
        return user

    @staticmethod
    def issue_token(user: UserModel) -> str:
        return security.create_access_token(
            user_id=user.id,
            email=user.email,
            name=user.name,
            role=UserRole(user.role).value,
        )

    async def request_password_reset(self, email: str) -> None:
        """Email a reset link when the account exists; silent otherwise."""
        user = await self.users.get_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return
        token = security.create_reset_token(user_id=user.id, password_hash=user.password_hash)
        if self.notifier is not None and not await self.notifier.password_reset(user, token):
            logger.warning("Password reset email for %s was not delivered", user.email)

    async def reset_password(self, token: str, new_password: str) -> UserModel:
        claims = security.decode_reset_token(token)
        user = await self.users.get_by_id(claims["sub"])
        if user is None or not security.reset_token_matches(claims, user.password_hash):
            raise security.InvalidToken("Reset link is no longer valid")
        user.password_hash = await security.hash_password_async(new_password)
        logger.info("Password updated for %s", user.email)
        return user
