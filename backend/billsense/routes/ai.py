"""
BillSense AI Backend — AI-Assist Route Table
============================================

What:  /api/ai: Gemini-backed helpers for the invoice workflow.
How:   Thin handlers around AIService; upstream failures surface as 503 via
       the global LLMServiceError / CircuitBreakerOpenError handlers.

Route table (all protected):
    POST /api/ai/generate-invoice    free text → draft invoice fields
    POST /api/ai/generate-reminder   invoice id → reminder e-mail text
    GET  /api/ai/dashboard-summary   caller's invoices → insights
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from billsense.dependencies import get_ai_service, get_db_session
from billsense.middleware.auth import protect
from billsense.models.user import User
from billsense.schemas.ai import (
    DashboardSummaryResponse,
    GenerateInvoiceRequest,
    GenerateReminderRequest,
    ParsedInvoice,
    ReminderResponse,
)
from billsense.schemas.common import ErrorResponse
from billsense.services.ai_service import AIService

router = APIRouter(
    prefix="/api/ai",
    tags=["AI"],
    responses={
        401: {"description": "Not authorized", "model": ErrorResponse},
        503: {"description": "AI service unavailable", "model": ErrorResponse},
    },
)


@router.post(
    "/generate-invoice",
    response_model=ParsedInvoice,
    responses={400: {"description": "Missing text", "model": ErrorResponse}},
    summary="Parse invoice fields from free text",
)
async def generate_invoice(
    payload: GenerateInvoiceRequest,
    user: User = Depends(protect),
    ai: AIService = Depends(get_ai_service),
) -> ParsedInvoice:
    return await ai.parse_invoice_from_text(payload.text)


@router.post(
    "/generate-reminder",
    response_model=ReminderResponse,
    responses={404: {"description": "Invoice not found", "model": ErrorResponse}},
    summary="Draft a payment reminder e-mail",
)
async def generate_reminder(
    payload: GenerateReminderRequest,
    user: User = Depends(protect),
    ai: AIService = Depends(get_ai_service),
    db: AsyncSession = Depends(get_db_session),
) -> ReminderResponse:
    return await ai.generate_reminder(db, user.id, payload.invoice_id)


@router.get(
    "/dashboard-summary",
    response_model=DashboardSummaryResponse,
    summary="AI insights over the caller's invoices",
)
async def dashboard_summary(
    user: User = Depends(protect),
    ai: AIService = Depends(get_ai_service),
    db: AsyncSession = Depends(get_db_session),
) -> DashboardSummaryResponse:
    return await ai.dashboard_summary(db, user.id)
