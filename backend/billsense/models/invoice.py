"""
BillSense AI Backend — Invoice SQLAlchemy Model
===============================================

What:  ORM model representing the `invoices` table.
Why:   Maps invoice records to database rows for the CRUD and AI services.
Who:   Used by InvoiceService and AIService; Alembic mirrors it in migrations.

Table Design Rationale:
    - UUID primary key: non-sequential ids are not enumerable through the API
    - user_id: every invoice belongs to exactly one user; all queries filter on it
    - items: JSON list of line items; they are always read and written with
      the invoice, so a child table would only add joins
    - money columns: NUMERIC(12, 2) returned as float so JSON responses carry
      plain numbers
    - status: 'unpaid' | 'paid'

    Index on (user_id, created_at DESC):
        The list endpoint always asks for one user's invoices, newest first.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, List, TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billsense.database import Base

if TYPE_CHECKING:
    from billsense.models.user import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _money() -> Numeric:
    return Numeric(12, 2, asdecimal=False)


class Invoice(Base):
    """
    A single invoice issued by a user to a client.

    Lifecycle:
        1. Created via POST /api/invoices or from AI-parsed text (status='unpaid')
        2. Edited via PUT; totals recomputed when items change
        3. Marked 'paid' by an update; deleted via DELETE
    """

    __tablename__ = "invoices"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    invoice_number: Mapped[str] = mapped_column(String(64), nullable=False)
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # ── Bill To ───────────────────────────────────────────────────────────
    client: Mapped[str] = mapped_column(String(255), nullable=False)
    client_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    client_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    client_phone: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # ── Amounts ───────────────────────────────────────────────────────────
    items: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    subtotal: Mapped[float] = mapped_column(_money(), nullable=False, default=0)
    tax_total: Mapped[float] = mapped_column(_money(), nullable=False, default=0)
    amount: Mapped[float] = mapped_column(_money(), nullable=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    payment_terms: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="unpaid",
        server_default=text("'unpaid'"),
    )

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

    owner: Mapped["User"] = relationship(back_populates="invoices", lazy="noload")

    __table_args__ = (
        Index("idx_invoices_user_created_at", "user_id", text("created_at DESC")),
    )

    def __repr__(self) -> str:
        return (
            f"<Invoice(id={self.id}, number='{self.invoice_number}', "
            f"amount={self.amount}, status='{self.status}')>"
        )
