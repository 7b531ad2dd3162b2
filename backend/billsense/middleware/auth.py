"""
BillSense AI Backend — Auth Gate
================================

What:  `protect`, the dependency placed in front of every protected handler.
Why:   A protected handler must never run for a caller without a valid token.
How:   FastAPI resolves `Depends(protect)` before the handler body runs; if
       protect raises, the handler is skipped and the global handler answers
       401. Protection is therefore composed per route, not implied by
       middleware registration order.

Gating contract:
    - Credential: `Authorization: Bearer <jwt>`
    - Missing header, wrong scheme, empty/forged/expired token, unknown user,
      and ANY exception raised while verifying → AuthenticationError with one
      fixed message. Nothing distinguishes the cases for the caller.
    - Success: the User row is stored on `request.state.user` and returned.
"""

import logging
import uuid
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from billsense.dependencies import AppContext, get_context, get_db_session
from billsense.exceptions import AuthenticationError
from billsense.models.user import User
from billsense.security import decode_access_token
from billsense.services.auth_service import auth_service

logger = logging.getLogger(__name__)

AUTH_HEADER = "Authorization"
AUTH_SCHEME = "bearer"


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token part of a Bearer header, or None when unusable."""
    raw = (authorization or "").strip()
    scheme, _, token = raw.partition(" ")
    if scheme.lower() != AUTH_SCHEME or not token.strip():
        return None
    return token.strip()


async def protect(
    request: Request,
    context: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """
    Verify the caller's bearer token and resolve the User.

    Raises:
        AuthenticationError: for every failure, including verifier exceptions.
    """
    token = extract_bearer_token(request.headers.get(AUTH_HEADER))
    if token is None:
        logger.info("Rejected %s %s: no bearer token", request.method, request.url.path)
        raise AuthenticationError()

    try:
        claims = decode_access_token(token, context.settings)
        user = await auth_service.get_user_by_id(db, uuid.UUID(str(claims["sub"])))
    except Exception as e:
        # Fail closed: a verifier bug or database hiccup must not let a request through
        logger.info(
            "Rejected %s %s: token verification failed (%s)",
            request.method,
            request.url.path,
            type(e).__name__,
        )
        raise AuthenticationError() from e

    if user is None:
        logger.info("Rejected %s %s: token subject not found", request.method, request.url.path)
        raise AuthenticationError()

    request.state.user = user
    return user
