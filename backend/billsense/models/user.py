"""
BillSense AI Backend — User SQLAlchemy Model
============================================

What:  ORM model for the `users` table (account + business profile).
Who:   Used by AuthService and by the auth gate to resolve token subjects.

Table Design Rationale:
    - UUID primary key: non-sequential, safe to put in a token `sub` claim
    - email: unique, stored normalised (trimmed, lower-case)
    - password_hash: bcrypt hash, never returned by the API
    - business_name/address/phone: printed on the "bill from" side of invoices
"""

import uuid
from datetime import datetime, timezone
from typing import List, TYPE_CHECKING

from sqlalchemy import DateTime, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billsense.database import Base

if TYPE_CHECKING:
    from billsense.models.invoice import Invoice


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """An account that owns invoices."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    business_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    invoices: Mapped[List["Invoice"]] = relationship(
        back_populates="owner",
        cascade="all, delete-orphan",
        lazy="noload",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
