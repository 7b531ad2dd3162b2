"""
BillSense AI Backend — Auth Service
===================================

What:  Account registration, login, profile read/update, and token-subject lookup.
Why:   The /api/auth route table and the auth gate share one place that
       knows how users are stored and how credentials are checked.
How:   Passwords are bcrypt-hashed and tokens are JWTs (see billsense.security).

Login failures:
    Unknown e-mail and wrong password raise the same InvalidCredentialsError,
    so the response does not reveal which accounts exist.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from billsense.config import Settings
from billsense.exceptions import (
    ConflictError,
    DatabaseError,
    InvalidCredentialsError,
)
from billsense.models.user import User
from billsense.schemas.auth import (
    AuthResponse,
    LoginRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    UserResponse,
)
from billsense.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    """Stateless; db session and settings are passed per call."""

    async def register(
        self,
        db: AsyncSession,
        settings: Settings,
        payload: RegisterRequest,
    ) -> AuthResponse:
        """
        Create an account and return it with a fresh token.

        Raises:
            ConflictError: e-mail already registered, including a concurrent
                           sign-up that trips the unique index (→ 409)
        """
        existing = await self.get_user_by_email(db, payload.email)
        if existing is not None:
            raise ConflictError(message="User already exists", context={"field": "email"})

        user = User(
            name=payload.name,
            email=payload.email,
            password_hash=hash_password(payload.password),
            business_name=payload.business_name,
            address=payload.address,
            phone=payload.phone,
        )
        try:
            db.add(user)
            await db.flush()
            await db.refresh(user)
        except IntegrityError:
            logger.warning("Registration lost a race on the e-mail unique index")
            raise ConflictError(message="User already exists", context={"field": "email"})
        except Exception as e:
            logger.error("Database error registering user: %s", type(e).__name__, exc_info=True)
            raise DatabaseError(
                message="Could not create the account. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("User %s registered", user.id)
        return self._auth_response(user, settings)

    async def login(
        self,
        db: AsyncSession,
        settings: Settings,
        payload: LoginRequest,
    ) -> AuthResponse:
        user = await self.get_user_by_email(db, payload.email)
        if user is None or not verify_password(payload.password, user.password_hash):
            logger.info("Failed login attempt")
            raise InvalidCredentialsError()

        logger.info("User %s logged in", user.id)
        return self._auth_response(user, settings)

    async def update_profile(
        self,
        db: AsyncSession,
        user: User,
        payload: ProfileUpdateRequest,
    ) -> UserResponse:
        """Partial update; a new password is re-hashed before storage."""
        changes = payload.model_dump(exclude_unset=True)
        password = changes.pop("password", None)
        if password:
            user.password_hash = hash_password(password)
        for field, value in changes.items():
            if field == "name" and not value:
                continue
            setattr(user, field, value)

        try:
            merged = await db.merge(user)
            await db.flush()
            await db.refresh(merged)
        except Exception as e:
            logger.error("Database error updating user %s: %s", user.id, type(e).__name__)
            raise DatabaseError(
                message="Could not update the profile. Please try again.",
                context={"user_id": str(user.id)},
            )
        return UserResponse.model_validate(merged)

    async def get_user_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def get_user_by_id(self, db: AsyncSession, user_id: uuid.UUID) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    def _auth_response(user: User, settings: Settings) -> AuthResponse:
        return AuthResponse(
            user=UserResponse.model_validate(user),
            token=create_access_token(str(user.id), settings),
        )


auth_service = AuthService()
