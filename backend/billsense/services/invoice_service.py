"""
BillSense AI Backend — Invoice Service (CRUD Business Logic)
============================================================

What:  Create, list, fetch, update and delete invoices for one user.
Why:   Keeps persistence rules out of the route handlers.
How:   Each method receives the request's AsyncSession and the caller's id;
       every query is scoped to that user.
Who:   Called by the /api/invoices route table and by AIService.

Ownership rule:
    An invoice that exists but belongs to another user is reported exactly
    like a missing one (NotFoundError). A path id that is not a UUID is
    reported the same way, since no invoice can have it.

Design Decision:
    InvoiceService is stateless: it receives the db session for each call,
    so the module-level instance is safe to share between requests.
"""

import logging
import uuid
from datetime import date
from typing import List, Optional, Union

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from billsense.exceptions import BillSenseError, DatabaseError, NotFoundError
from billsense.models.invoice import Invoice
from billsense.schemas.invoice import (
    InvoiceCreate,
    InvoiceResponse,
    InvoiceUpdate,
    compute_totals,
)

logger = logging.getLogger(__name__)

# Columns that are NOT NULL; an explicit null in an update leaves them unchanged
REQUIRED_FIELDS = {"client", "amount", "invoice_number", "invoice_date", "status"}


def parse_invoice_id(raw: Union[str, uuid.UUID]) -> uuid.UUID:
    """Turn a path segment into a UUID, or raise NotFoundError."""
    if isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise NotFoundError(resource="invoice", resource_id=str(raw))


def generate_invoice_number(invoice_id: uuid.UUID) -> str:
    return f"INV-{invoice_id.hex[:8].upper()}"


class InvoiceService:
    """
    Business logic layer for invoice operations.

    Error Handling Strategy:
        NotFoundError propagates as-is (→ 404). Anything else raised by the
        database layer is logged and wrapped in DatabaseError (→ 500) so
        driver details never reach the client.
    """

    async def create_invoice(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        payload: InvoiceCreate,
    ) -> InvoiceResponse:
        """
        Persist a new invoice owned by `user_id`.

        Totals:
            subtotal/tax_total come from the items. `amount` is taken from the
            payload when given, otherwise it is the items' grand total.
        """
        totals = compute_totals(payload.items)
        invoice_id = uuid.uuid4()

        invoice = Invoice(
            id=invoice_id,
            user_id=user_id,
            invoice_number=payload.invoice_number or generate_invoice_number(invoice_id),
            invoice_date=payload.invoice_date or date.today(),
            due_date=payload.due_date,
            client=payload.client,
            client_email=payload.client_email,
            client_address=payload.client_address,
            client_phone=payload.client_phone,
            items=[item.model_dump() for item in payload.items],
            subtotal=totals.subtotal,
            tax_total=totals.tax_total,
            amount=payload.amount if payload.amount is not None else totals.total,
            notes=payload.notes,
            payment_terms=payload.payment_terms,
            status=payload.status,
        )

        try:
            db.add(invoice)
            await db.flush()
            await db.refresh(invoice)
        except Exception as e:
            logger.error("Database error creating invoice: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the invoice. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Invoice %s created (%d items)", invoice.id, len(payload.items))
        return InvoiceResponse.model_validate(invoice)

    async def list_invoices(self, db: AsyncSession, user_id: uuid.UUID) -> List[InvoiceResponse]:
        """Return the caller's invoices, newest first."""
        invoices = await self.fetch_user_invoices(db, user_id)
        return [InvoiceResponse.model_validate(invoice) for invoice in invoices]

    async def fetch_user_invoices(self, db: AsyncSession, user_id: uuid.UUID) -> List[Invoice]:
        """ORM rows for one user, newest first. Also used by the dashboard summary."""
        try:
            result = await db.execute(
                select(Invoice)
                .where(Invoice.user_id == user_id)
                .order_by(desc(Invoice.created_at))
            )
            return list(result.scalars().all())
        except Exception as e:
            logger.error("Database error listing invoices: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve invoices. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def get_invoice(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        invoice_id: Union[str, uuid.UUID],
    ) -> InvoiceResponse:
        invoice = await self._get_owned(db, user_id, invoice_id)
        return InvoiceResponse.model_validate(invoice)

    async def update_invoice(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        invoice_id: Union[str, uuid.UUID],
        payload: InvoiceUpdate,
    ) -> InvoiceResponse:
        """
        Apply a partial update.

        Only fields present in the request body change. Sending `items`
        recomputes subtotal/tax_total, and `amount` too unless the same
        request also sets it.
        """
        invoice = await self._get_owned(db, user_id, invoice_id)
        changes = payload.model_dump(exclude_unset=True)

        items = changes.pop("items", None)
        if items is not None:
            totals = compute_totals(payload.items or [])
            invoice.items = [item.model_dump() for item in payload.items or []]
            invoice.subtotal = totals.subtotal
            invoice.tax_total = totals.tax_total
            if "amount" not in changes:
                invoice.amount = totals.total

        for field, value in changes.items():
            if value is None and field in REQUIRED_FIELDS:
                continue
            setattr(invoice, field, value)

        try:
            await db.flush()
            await db.refresh(invoice)
        except Exception as e:
            logger.error("Database error updating invoice %s: %s", invoice.id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the invoice. Please try again.",
                context={"invoice_id": str(invoice.id)},
            )

        logger.info("Invoice %s updated (%s)", invoice.id, ", ".join(sorted(changes)) or "items")
        return InvoiceResponse.model_validate(invoice)

    async def delete_invoice(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        invoice_id: Union[str, uuid.UUID],
    ) -> None:
        invoice = await self._get_owned(db, user_id, invoice_id)
        try:
            await db.delete(invoice)
            await db.flush()
        except Exception as e:
            logger.error("Database error deleting invoice %s: %s", invoice.id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the invoice. Please try again.",
                context={"invoice_id": str(invoice.id)},
            )
        logger.info("Invoice %s deleted", invoice.id)

    async def _get_owned(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        invoice_id: Union[str, uuid.UUID],
    ) -> Invoice:
        """
        Fetch one invoice by primary key, scoped to its owner.

        Raises:
            NotFoundError: malformed id, missing row, or another user's row
            DatabaseError: query execution failed
        """
        parsed_id = parse_invoice_id(invoice_id)
        try:
            result = await db.execute(
                select(Invoice).where(Invoice.id == parsed_id, Invoice.user_id == user_id)
            )
            invoice: Optional[Invoice] = result.scalar_one_or_none()
        except BillSenseError:
            raise
        except Exception as e:
            logger.error("Database error fetching invoice %s: %s", parsed_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the invoice. Please try again.",
                context={"invoice_id": str(parsed_id)},
            )

        if invoice is None:
            raise NotFoundError(resource="invoice", resource_id=str(parsed_id))
        return invoice


invoice_service = InvoiceService()
