"""
BillSense AI Backend — Credential Helpers
=========================================

What:  Password hashing (bcrypt) and access-token issue/verify (PyJWT).
Why:   Keeps all cryptography in one module so the auth gate and AuthService
       never touch bcrypt or jwt directly.

Token format:
    HS256 JWT (algorithm configurable) with claims
        sub:  user id (UUID string)
        type: "access"
        iat:  issued-at (epoch seconds)
        exp:  expiry (iat + JWT_EXPIRE_DAYS)
    An expired token is simply invalid; there is no refresh flow.
"""

import time
from typing import Any, Dict

import bcrypt
import jwt

from billsense.config import Settings


class TokenError(Exception):
    """Raised by decode_access_token for any unusable token."""
    pass


def hash_password(plain_password: str) -> str:
    password = (plain_password or "").encode("utf-8")
    if not password:
        raise ValueError("Password is empty.")
    return bcrypt.hashpw(password, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (password_hash or "").encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        return False


def create_access_token(subject: str, settings: Settings) -> str:
    issued_at = int(time.time())
    payload = {
        "sub": subject,
        "type": "access",
        "iat": issued_at,
        "exp": issued_at + settings.jwt_expire_days * 86400,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> Dict[str, Any]:
    """
    Verify signature and expiry, return the claims.

    Raises:
        TokenError: empty token, bad signature, expired, wrong type, no subject.
    """
    raw = (token or "").strip()
    if not raw:
        raise TokenError("Access token is empty.")

    try:
        payload = jwt.decode(
            raw,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.InvalidTokenError as exc:
        raise TokenError("Invalid access token.") from exc

    if str(payload.get("type") or "").lower() != "access":
        raise TokenError("Token is not an access token.")
    if not str(payload.get("sub") or "").strip():
        raise TokenError("Token has no subject.")
    return payload
