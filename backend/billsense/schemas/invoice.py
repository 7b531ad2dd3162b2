"""
BillSense AI Backend — Invoice Request/Response Schemas
=======================================================

What:  Pydantic models defining the invoice API contract.
Why:   Input validation, line-item total computation, and OpenAPI docs.
How:   FastAPI validates request bodies against InvoiceCreate/InvoiceUpdate
       and serializes InvoiceResponse from ORM objects (from_attributes).

Amount rules:
    - Each line item's `total` is quantity × unit_price × (1 + tax_percent/100).
    - `amount` may be sent directly (e.g. {"client": "Acme", "amount": 500}).
    - When omitted, `amount` defaults to the grand total of the items;
      a create with neither amount nor items is rejected.
    - Money values must be finite and fit the Numeric(12, 2) columns
      (at most MAX_MONEY), computed totals included.
"""

import math
import uuid
from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

InvoiceStatus = Literal["unpaid", "paid"]

# Largest value a Numeric(12, 2) column holds.
MAX_MONEY = 9_999_999_999.99


def check_money(value: float, label: str) -> float:
    if not math.isfinite(value) or value > MAX_MONEY:
        raise ValueError(f"{label} must be a finite number no greater than {MAX_MONEY}")
    return value


class InvoiceItem(BaseModel):
    """One line on an invoice."""
    name: str = Field(..., min_length=1, max_length=255)
    quantity: float = Field(default=1, gt=0, le=MAX_MONEY, allow_inf_nan=False)
    unit_price: float = Field(default=0, ge=0, le=MAX_MONEY, allow_inf_nan=False)
    tax_percent: float = Field(default=0, ge=0, le=100, allow_inf_nan=False)
    total: float = Field(default=0, allow_inf_nan=False, description="Computed by the server; input is ignored")

    @model_validator(mode="after")
    def compute_total(self) -> "InvoiceItem":
        net = self.quantity * self.unit_price
        self.total = check_money(round(net * (1 + self.tax_percent / 100), 2), "Line item total")
        return self


class InvoiceTotals(BaseModel):
    subtotal: float
    tax_total: float
    total: float


def compute_totals(items: List[InvoiceItem]) -> InvoiceTotals:
    """Sums line items into subtotal, tax and grand total (2-dp rounding)."""
    subtotal = round(sum(item.quantity * item.unit_price for item in items), 2)
    total = round(sum(item.total for item in items), 2)
    return InvoiceTotals(subtotal=subtotal, tax_total=round(total - subtotal, 2), total=total)


class InvoiceCreate(BaseModel):
    """
    What:  Body of POST /api/invoices.
    Note:  `invoice_number` is generated when omitted; `invoice_date`
           defaults to today.
    """
    client: str = Field(..., min_length=1, max_length=255, description="Bill-to name")
    amount: Optional[float] = Field(default=None, ge=0, le=MAX_MONEY, allow_inf_nan=False)
    client_email: Optional[str] = Field(default=None, max_length=320)
    client_address: Optional[str] = None
    client_phone: Optional[str] = Field(default=None, max_length=64)
    invoice_number: Optional[str] = Field(default=None, min_length=1, max_length=64)
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    items: List[InvoiceItem] = Field(default_factory=list)
    notes: Optional[str] = None
    payment_terms: Optional[str] = Field(default=None, max_length=255)
    status: InvoiceStatus = "unpaid"

    @model_validator(mode="after")
    def require_amount_or_items(self) -> "InvoiceCreate":
        if self.amount is None and not self.items:
            raise ValueError("Provide either 'amount' or at least one line item")
        if self.items:
            check_money(compute_totals(self.items).total, "Invoice total")
        return self


class InvoiceUpdate(BaseModel):
    """
    What:  Body of PUT /api/invoices/{id}. Every field is optional; only the
           fields present in the request are changed.
    """
    client: Optional[str] = Field(default=None, min_length=1, max_length=255)
    amount: Optional[float] = Field(default=None, ge=0, le=MAX_MONEY, allow_inf_nan=False)
    client_email: Optional[str] = Field(default=None, max_length=320)
    client_address: Optional[str] = None
    client_phone: Optional[str] = Field(default=None, max_length=64)
    invoice_number: Optional[str] = Field(default=None, min_length=1, max_length=64)
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    items: Optional[List[InvoiceItem]] = None
    notes: Optional[str] = None
    payment_terms: Optional[str] = Field(default=None, max_length=255)
    status: Optional[InvoiceStatus] = None

    @model_validator(mode="after")
    def check_items_total(self) -> "InvoiceUpdate":
        if self.items:
            check_money(compute_totals(self.items).total, "Invoice total")
        return self


class InvoiceResponse(BaseModel):
    """Full representation of an invoice, as stored."""
    id: uuid.UUID
    invoice_number: str
    invoice_date: date
    due_date: Optional[date] = None
    client: str
    client_email: Optional[str] = None
    client_address: Optional[str] = None
    client_phone: Optional[str] = None
    items: List[InvoiceItem] = Field(default_factory=list)
    subtotal: float
    tax_total: float
    amount: float
    notes: Optional[str] = None
    payment_terms: Optional[str] = None
    status: InvoiceStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
