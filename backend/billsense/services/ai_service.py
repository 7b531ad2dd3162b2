"""
BillSense AI Backend — AI-Assist Service
========================================

What:  Turns the three /api/ai operations into prompts and parses the replies.
Why:   Route handlers stay thin; the LLM provider stays swappable.
How:   Builds a prompt, calls LLMService.generate_text(), and validates the
       reply into a response schema.

Operations:
    parse_invoice_from_text   free text     → ParsedInvoice (JSON reply)
    generate_reminder         invoice id    → reminder e-mail text
    dashboard_summary         caller's data → list of short insights (JSON reply)

Model replies are frequently wrapped in ```json fences or surrounded by a
sentence of prose; extract_json() tolerates both. A reply that still is not
valid JSON is an upstream failure (LLMServiceError → 503), not a client error.
"""

import json
import logging
import re
import uuid
from typing import Any, List, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from billsense.exceptions import LLMServiceError, ValidationError
from billsense.models.invoice import Invoice
from billsense.schemas.ai import DashboardSummaryResponse, ParsedInvoice, ReminderResponse
from billsense.services.invoice_service import InvoiceService, invoice_service
from billsense.services.llm_base import LLMService

logger = logging.getLogger(__name__)

NO_DATA_INSIGHT = "No invoice data available to generate insights."
RECENT_INVOICE_LIMIT = 5
MAX_TEXT_CHARS = 10_000

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)

PARSE_INVOICE_PROMPT = """You are an expert invoice data extraction assistant.
Read the text below and extract the invoice details.

Return ONLY a valid JSON object with this exact structure and no commentary:
{{
  "client": "client or company name",
  "client_email": "client email if present, otherwise empty string",
  "client_address": "client address if present, otherwise empty string",
  "items": [
    {{"name": "item description", "quantity": 1, "unit_price": 0.0}}
  ]
}}

Text:
--- TEXT START ---
{text}
--- TEXT END ---"""

REMINDER_PROMPT = """You are a professional and polite accounting assistant.
Write a friendly reminder email to a client about an invoice.

Use these details:
- Client name: {client}
- Invoice number: {invoice_number}
- Amount due: {amount:.2f}
- Due date: {due_date}
- Status: {status}

Keep it concise and courteous. Start the email with "Subject:" on the first line.
Return only the email text."""

DASHBOARD_PROMPT = """You are a friendly and insightful financial analyst for a small business owner.
Based on the following summary of their invoice data, provide 2-3 concise and actionable insights.
Each insight should be a short string, written in a friendly, encouraging tone.

Data summary:
- Total invoices: {total_invoices}
- Paid invoices: {paid_count}
- Unpaid invoices: {unpaid_count}
- Total revenue from paid invoices: {total_revenue:.2f}
- Total outstanding amount from unpaid invoices: {total_outstanding:.2f}
- Recent invoices (newest first):
{recent}

Return ONLY a valid JSON object of the form: {{"insights": ["insight 1", "insight 2"]}}"""


def extract_json(reply: str) -> Any:
    """
    Parse the JSON payload out of a model reply.

    Tries, in order: a fenced ```json block, the whole reply, then the
    outermost {...} or [...] span.

    Raises:
        LLMServiceError: nothing parseable was found.
    """
    candidates: List[str] = []
    fenced = _FENCE_RE.search(reply or "")
    if fenced:
        candidates.append(fenced.group(1).strip())
    candidates.append((reply or "").strip())
    for opener, closer in (("{", "}"), ("[", "]")):
        start, end = (reply or "").find(opener), (reply or "").rfind(closer)
        if start != -1 and end > start:
            candidates.append(reply[start:end + 1])

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except (TypeError, ValueError):
            continue

    raise LLMServiceError(
        message="The AI service returned an unreadable response. Please try again.",
        context={"reply_chars": len(reply or "")},
    )


def _none_if_blank(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class AIService:
    """
    AI-assist operations for one application instance.

    Attributes:
        llm: text-generation provider (GeminiService in production)
        invoices: used to load the caller's invoices with ownership checks
    """

    def __init__(self, llm: LLMService, invoices: InvoiceService = invoice_service):
        self.llm = llm
        self.invoices = invoices

    async def parse_invoice_from_text(self, text: str) -> ParsedInvoice:
        """
        Extract draft invoice fields from free text.

        Raises:
            ValidationError: text is empty or too long (→ 400)
            LLMServiceError / CircuitBreakerOpenError: upstream failure (→ 503)
        """
        cleaned = (text or "").strip()
        if not cleaned:
            raise ValidationError(message="Text is required", field="text")
        if len(cleaned) > MAX_TEXT_CHARS:
            raise ValidationError(
                message=f"Text must be at most {MAX_TEXT_CHARS} characters",
                field="text",
            )

        reply = await self.llm.generate_text(PARSE_INVOICE_PROMPT.format(text=cleaned))
        data = extract_json(reply)
        if not isinstance(data, dict):
            raise LLMServiceError(message="The AI service returned an unexpected response format.")

        data = {key: _none_if_blank(value) for key, value in data.items()}
        if data.get("items") is None:
            data["items"] = []
        try:
            parsed = ParsedInvoice.model_validate(data)
        except PydanticValidationError as e:
            logger.warning("Parsed invoice failed validation: %d errors", e.error_count())
            raise LLMServiceError(message="The AI service returned incomplete invoice data.")

        logger.info("Parsed invoice draft from text (%d items)", len(parsed.items))
        return parsed

    async def generate_reminder(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        invoice_id: Union[str, uuid.UUID],
    ) -> ReminderResponse:
        """
        Draft a payment reminder e-mail for one of the caller's invoices.

        Raises:
            NotFoundError: invoice missing or owned by someone else (→ 404)
        """
        invoice = await self.invoices.get_invoice(db, user_id, invoice_id)
        prompt = REMINDER_PROMPT.format(
            client=invoice.client,
            invoice_number=invoice.invoice_number,
            amount=invoice.amount,
            due_date=invoice.due_date.isoformat() if invoice.due_date else "not specified",
            status=invoice.status,
        )
        reply = await self.llm.generate_text(prompt)
        if not reply:
            raise LLMServiceError(message="The AI service returned an empty reminder.")
        return ReminderResponse(reminder_text=reply)

    async def dashboard_summary(self, db: AsyncSession, user_id: uuid.UUID) -> DashboardSummaryResponse:
        """
        Summarise the caller's invoices into a few insights.

        With no invoices the fixed NO_DATA_INSIGHT is returned and the model
        is not called.
        """
        invoices = await self.invoices.fetch_user_invoices(db, user_id)
        if not invoices:
            return DashboardSummaryResponse(insights=[NO_DATA_INSIGHT])

        prompt = DASHBOARD_PROMPT.format(**summarize_invoices(invoices))
        data = extract_json(await self.llm.generate_text(prompt))
        if isinstance(data, dict):
            data = data.get("insights")
        if not isinstance(data, list):
            raise LLMServiceError(message="The AI service returned an unexpected response format.")

        insights = [str(item).strip() for item in data if str(item).strip()]
        if not insights:
            raise LLMServiceError(message="The AI service returned no insights.")
        return DashboardSummaryResponse(insights=insights)


def summarize_invoices(invoices: List[Invoice]) -> dict:
    """Aggregate figures fed to the dashboard prompt. `invoices` is newest first."""
    paid = [inv for inv in invoices if inv.status == "paid"]
    unpaid = [inv for inv in invoices if inv.status != "paid"]
    recent_lines = [
        f"  - {inv.invoice_number}: {inv.client}, {float(inv.amount):.2f}, {inv.status}"
        for inv in invoices[:RECENT_INVOICE_LIMIT]
    ]
    return {
        "total_invoices": len(invoices),
        "paid_count": len(paid),
        "unpaid_count": len(unpaid),
        "total_revenue": sum(float(inv.amount) for inv in paid),
        "total_outstanding": sum(float(inv.amount) for inv in unpaid),
        "recent": "\n".join(recent_lines),
    }
