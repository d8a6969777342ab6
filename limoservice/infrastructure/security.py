"""
Credential hashing and JWT issuing / decoding.

* Passwords: bcrypt through passlib's ``CryptContext``; hashing runs in a
  worker thread so the event loop stays responsive.
* Sessions: stateless HS256 bearer tokens carrying id, email, name and
  role.  Sign-out revokes the token's ``jti`` in Redis.
* Password reset: short-lived token with ``purpose=password_reset`` bound
  to the current password hash, so it stops working once used.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from passlib.context import CryptContext

from limoservice.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

RESET_PURPOSE = "password_reset"


class InvalidToken(Exception):
    """Token is malformed, expired, revoked or issued for another purpose."""


def hash_password(password: str) -> str:
    return str(pwd_context.hash(password))


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    try:
        return bool(pwd_context.verify(plain_password, hashed_password))
    except ValueError:
        logger.warning("Unreadable password hash encountered")
        return False


async def hash_password_async(password: str) -> str:
    return await asyncio.to_thread(hash_password, password)


async def verify_password_async(plain_password: str, hashed_password: Optional[str]) -> bool:
    return await asyncio.to_thread(verify_password, plain_password, hashed_password)


def _encode(claims: dict[str, Any], expires_in: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {**claims, "iat": now, "exp": now + expires_in}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def _decode(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except jwt.PyJWTError as exc:
        raise InvalidToken(str(exc)) from exc


def create_access_token(*, user_id: str, email: str, name: str, role: str) -> str:
    return _encode(
        {
            "sub": user_id,
            "email": email,
            "name": name,
            "role": role,
            "jti": uuid.uuid4().hex,
        },
        timedelta(minutes=settings.access_token_expire_minutes),
    )


def decode_access_token(token: str) -> dict[str, Any]:
    claims = _decode(token)
    if "purpose" in claims or not claims.get("sub") or not claims.get("jti"):
        raise InvalidToken("Not an access token")
    return claims


def seconds_until_expiry(claims: dict[str, Any]) -> int:
    exp = int(claims.get("exp", 0))
    return max(exp - int(datetime.now(timezone.utc).timestamp()), 0)


def _password_fingerprint(password_hash: Optional[str]) -> str:
    return hashlib.sha256((password_hash or "").encode()).hexdigest()[:16]


def create_reset_token(*, user_id: str, password_hash: Optional[str]) -> str:
    return _encode(
        {
            "sub": user_id,
            "purpose": RESET_PURPOSE,
            "pwd": _password_fingerprint(password_hash),
        },
        timedelta(minutes=settings.reset_token_expire_minutes),
    )


def decode_reset_token(token: str) -> dict[str, Any]:
    claims = _decode(token)
    if claims.get("purpose") != RESET_PURPOSE or not claims.get("sub"):
        raise InvalidToken("Not a password reset token")
    return claims


def reset_token_matches(claims: dict[str, Any], password_hash: Optional[str]) -> bool:
    return claims.get("pwd") == _password_fingerprint(password_hash)
