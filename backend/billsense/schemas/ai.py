"""
BillSense AI Backend — AI-Assist Request/Response Schemas
=========================================================

What:  Contract of the /api/ai route table.
"""

import uuid
from typing import List, Optional

from pydantic import BaseModel, Field


class GenerateInvoiceRequest(BaseModel):
    text: str = Field(..., description="Free text describing the work to invoice")


class ParsedInvoiceItem(BaseModel):
    name: str
    quantity: float = 1
    unit_price: float = 0


class ParsedInvoice(BaseModel):
    """
    What:  Draft invoice fields extracted from free text by the model.
    Why:   The frontend pre-fills its create-invoice form from this; nothing
           is persisted until the user submits POST /api/invoices.
    """
    client: Optional[str] = None
    client_email: Optional[str] = None
    client_address: Optional[str] = None
    items: List[ParsedInvoiceItem] = Field(default_factory=list)


class GenerateReminderRequest(BaseModel):
    invoice_id: uuid.UUID


class ReminderResponse(BaseModel):
    reminder_text: str


class DashboardSummaryResponse(BaseModel):
    insights: List[str]
