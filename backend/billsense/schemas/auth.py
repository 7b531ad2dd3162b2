"""
BillSense AI Backend — Auth Request/Response Schemas
====================================================

What:  API contract of the /api/auth route table.
Why:   Passwords and e-mails are checked here before AuthService sees them;
       `UserResponse` controls exactly which user columns leave the server
       (never the password hash).
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def _normalize_email(value: str) -> str:
    email = (value or "").strip().lower()
    local, _, domain = email.partition("@")
    if not local or "." not in domain:
        raise ValueError("Invalid email address")
    return email


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=6, max_length=128)
    business_name: Optional[str] = Field(default=None, max_length=255)
    address: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=64)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return (v or "").strip().lower()


class ProfileUpdateRequest(BaseModel):
    """Partial profile update; omitted fields keep their stored value."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    business_name: Optional[str] = Field(default=None, max_length=255)
    address: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=64)
    password: Optional[str] = Field(default=None, min_length=6, max_length=128)


class UserResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    business_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """Returned by register and login: the profile plus a bearer token."""
    user: UserResponse
    token: str = Field(description="JWT to send as 'Authorization: Bearer <token>'")
    token_type: str = "bearer"
