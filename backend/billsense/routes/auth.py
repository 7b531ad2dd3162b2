"""
BillSense AI Backend — Auth Route Table
=======================================

What:  /api/auth: register, login, and the caller's own profile.
Why:   Issues the bearer tokens that the auth gate checks on every other table.

Route table:
    POST /api/auth/register   public     create account (201) + token
    POST /api/auth/login      public     credentials → token
    GET  /api/auth/me         protected  current profile
    PUT  /api/auth/me         protected  update profile
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from billsense.config import Settings
from billsense.dependencies import get_db_session, get_settings
from billsense.middleware.auth import protect
from billsense.models.user import User
from billsense.schemas.auth import (
    AuthResponse,
    LoginRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    UserResponse,
)
from billsense.schemas.common import ErrorResponse
from billsense.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=AuthResponse,
    responses={
        400: {"description": "Invalid input", "model": ErrorResponse},
        409: {"description": "E-mail already registered", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> AuthResponse:
    return await auth_service.register(db, settings, payload)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"description": "Invalid email or password", "model": ErrorResponse}},
    summary="Exchange credentials for a bearer token",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> AuthResponse:
    return await auth_service.login(db, settings, payload)


@router.get(
    "/me",
    response_model=UserResponse,
    responses={401: {"description": "Not authorized", "model": ErrorResponse}},
    summary="Current user's profile",
)
async def get_me(user: User = Depends(protect)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.put(
    "/me",
    response_model=UserResponse,
    responses={401: {"description": "Not authorized", "model": ErrorResponse}},
    summary="Update the current user's profile",
)
async def update_me(
    payload: ProfileUpdateRequest,
    user: User = Depends(protect),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await auth_service.update_profile(db, user, payload)
