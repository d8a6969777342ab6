"""
Account endpoints
=================

POST /api/v1/auth/signup           -- create a customer account
POST /api/v1/auth/signin           -- exchange credentials for a bearer token
GET  /api/v1/auth/me               -- the signed-in user
POST /api/v1/auth/signout          -- revoke the current token
POST /api/v1/auth/forgot-password  -- email a reset link
POST /api/v1/auth/reset-password   -- set a new password from a reset link
"""

from typing import Optional

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, HTTPException, Request

from limoservice.api.dependencies import (
    get_account_service,
    get_current_user,
    get_redis,
    get_token_claims,
)
from limoservice.api.middleware import AUTH_LIMIT, limiter
from limoservice.api.schemas import (
    ErrorResponse,
    ForgotPasswordRequest,
    MessageResponse,
    ResetPasswordRequest,
    SigninRequest,
    SignupRequest,
    TokenResponse,
    UserResponse,
)
from limoservice.infrastructure.models import UserModel
from limoservice.infrastructure.redis_client import revoke_token
from limoservice.infrastructure.security import InvalidToken, seconds_until_expiry
from limoservice.services.accounts import (
    AccountService,
    EmailAlreadyRegistered,
    InvalidCredentials,
)

router = APIRouter(prefix="/auth", tags=["auth"])

RESET_SENT = "If an account exists for that email, a password reset link has been sent."


def _token_response(user: UserModel) -> TokenResponse:
    return TokenResponse(
        access_token=AccountService.issue_token(user),
        user=UserResponse.model_validate(user),
    )


@router.post(
    "/signup",
    status_code=201,
    response_model=TokenResponse,
    summary="Create a customer account",
    responses={409: {"model": ErrorResponse}},
)
@limiter.limit(AUTH_LIMIT)
async def signup(
    request: Request,
    body: SignupRequest,
    accounts: AccountService = Depends(get_account_service),
):
    try:
        user = await accounts.sign_up(name=body.name, email=body.email, password=body.password)
    except EmailAlreadyRegistered:
        raise HTTPException(status_code=409, detail="An account with this email already exists.")
    return _token_response(user)


@router.post(
    "/signin",
    response_model=TokenResponse,
    summary="Sign in with email and password",
    responses={401: {"model": ErrorResponse}},
)
@limiter.limit(AUTH_LIMIT)
async def signin(
    request: Request,
    body: SigninRequest,
    accounts: AccountService = Depends(get_account_service),
):
    try:
        user = await accounts.authenticate(body.email, body.password)
    except InvalidCredentials:
        raise HTTPException(status_code=401, detail="Invalid credentials.")
    return _token_response(user)


@router.get("/me", response_model=UserResponse, summary="Current user")
async def me(user: UserModel = Depends(get_current_user)):
    return user


@router.post("/signout", response_model=MessageResponse, summary="Sign out")
async def signout(
    user: UserModel = Depends(get_current_user),
    claims: Optional[dict] = Depends(get_token_claims),
    redis: aioredis.Redis = Depends(get_redis),
):
    await revoke_token(redis, claims["jti"], seconds_until_expiry(claims))
    return MessageResponse(message="Signed out.")


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    summary="Request a password reset link",
)
@limiter.limit(AUTH_LIMIT)
async def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    accounts: AccountService = Depends(get_account_service),
):
    await accounts.request_password_reset(body.email)
    return MessageResponse(message=RESET_SENT)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Choose a new password",
    responses={400: {"model": ErrorResponse}},
)
@limiter.limit(AUTH_LIMIT)
async def reset_password(
    request: Request,
    body: ResetPasswordRequest,
    accounts: AccountService = Depends(get_account_service),
):
    if body.password != body.confirm_password:
        raise HTTPException(status_code=400, detail="Passwords do not match.")
    try:
        await accounts.reset_password(body.token, body.password)
    except InvalidToken:
        raise HTTPException(status_code=400, detail="Reset link is invalid or has expired.")
    return MessageResponse(message="Password updated successfully.")
