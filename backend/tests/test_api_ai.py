"""
BillSense AI Backend — AI-Assist Route Tests
============================================

What:  /api/ai routes with the FakeLLM installed on the app context.

What we test:
    ✅ generate-invoice returns the parsed draft; blank text → 400
    ✅ generate-reminder for an owned invoice; unknown/foreign → 404
    ✅ dashboard-summary with no data never calls the model
    ✅ Upstream failures map to 503
"""

import uuid

import pytest

from billsense.exceptions import CircuitBreakerOpenError, LLMServiceError
from billsense.services.ai_service import NO_DATA_INSIGHT
from conftest import bearer


class TestGenerateInvoice:

    @pytest.mark.asyncio
    async def test_returns_draft(self, client, fake_llm, register_user):
        token, _ = await register_user()
        fake_llm.replies.append(
            '{"client": "Acme", "client_email": "", "items": [{"name": "Website", "quantity": 1, "unit_price": 1200}]}'
        )

        response = await client.post(
            "/api/ai/generate-invoice", json={"text": "Website for Acme, 1200"}, headers=bearer(token)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["client"] == "Acme"
        assert body["client_email"] is None
        assert body["items"] == [{"name": "Website", "quantity": 1.0, "unit_price": 1200.0}]

    @pytest.mark.asyncio
    async def test_blank_text_is_400(self, client, fake_llm, register_user):
        token, _ = await register_user()

        response = await client.post("/api/ai/generate-invoice", json={"text": "  "}, headers=bearer(token))

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert fake_llm.prompts == []

    @pytest.mark.asyncio
    async def test_unreadable_reply_is_503(self, client, fake_llm, register_user):
        token, _ = await register_user()
        fake_llm.replies.append("I could not find an invoice in that text, sorry.")

        response = await client.post("/api/ai/generate-invoice", json={"text": "hello"}, headers=bearer(token))

        assert response.status_code == 503
        assert response.json()["error"] == "llm_service_error"

    @pytest.mark.asyncio
    async def test_open_circuit_is_503_with_retry_after(self, client, fake_llm, register_user):
        token, _ = await register_user()
        fake_llm.replies.append(CircuitBreakerOpenError(recovery_time=42))

        response = await client.post("/api/ai/generate-invoice", json={"text": "hello"}, headers=bearer(token))

        assert response.status_code == 503
        assert response.json()["error"] == "service_unavailable"
        assert response.headers["Retry-After"] == "42"


class TestGenerateReminder:

    @pytest.mark.asyncio
    async def test_reminder_for_own_invoice(self, client, fake_llm, register_user):
        token, _ = await register_user()
        invoice = (await client.post(
            "/api/invoices", json={"client": "Acme", "amount": 500}, headers=bearer(token)
        )).json()
        fake_llm.replies.append("Subject: Payment reminder\n\nDear Acme, ...")

        response = await client.post(
            "/api/ai/generate-reminder", json={"invoice_id": invoice["id"]}, headers=bearer(token)
        )

        assert response.status_code == 200
        assert response.json()["reminder_text"].startswith("Subject: Payment reminder")
        assert invoice["invoice_number"] in fake_llm.prompts[0]

    @pytest.mark.asyncio
    async def test_foreign_invoice_is_404(self, client, fake_llm, register_user):
        owner_token, _ = await register_user()
        other_token, _ = await register_user()
        invoice = (await client.post(
            "/api/invoices", json={"client": "Acme", "amount": 500}, headers=bearer(owner_token)
        )).json()

        response = await client.post(
            "/api/ai/generate-reminder", json={"invoice_id": invoice["id"]}, headers=bearer(other_token)
        )

        assert response.status_code == 404
        assert fake_llm.prompts == []

    @pytest.mark.asyncio
    async def test_unknown_invoice_is_404(self, client, register_user):
        token, _ = await register_user()
        response = await client.post(
            "/api/ai/generate-reminder", json={"invoice_id": str(uuid.uuid4())}, headers=bearer(token)
        )
        assert response.status_code == 404


class TestDashboardSummary:

    @pytest.mark.asyncio
    async def test_no_invoices(self, client, fake_llm, register_user):
        token, _ = await register_user()

        response = await client.get("/api/ai/dashboard-summary", headers=bearer(token))

        assert response.status_code == 200
        assert response.json() == {"insights": [NO_DATA_INSIGHT]}
        assert fake_llm.prompts == []

    @pytest.mark.asyncio
    async def test_insights_over_invoices(self, client, fake_llm, register_user):
        token, _ = await register_user()
        await client.post("/api/invoices", json={"client": "Acme", "amount": 500, "status": "paid"}, headers=bearer(token))
        await client.post("/api/invoices", json={"client": "Globex", "amount": 120}, headers=bearer(token))
        fake_llm.replies.append('```json\n{"insights": ["Revenue is up", "Follow up with Globex"]}\n```')

        response = await client.get("/api/ai/dashboard-summary", headers=bearer(token))

        assert response.status_code == 200
        assert response.json()["insights"] == ["Revenue is up", "Follow up with Globex"]
        assert "Total invoices: 2" in fake_llm.prompts[0]
        assert "Globex" in fake_llm.prompts[0]

    @pytest.mark.asyncio
    async def test_llm_failure_is_503(self, client, fake_llm, register_user):
        token, _ = await register_user()
        await client.post("/api/invoices", json={"client": "Acme", "amount": 1}, headers=bearer(token))
        fake_llm.replies.append(LLMServiceError(retry_after=30))

        response = await client.get("/api/ai/dashboard-summary", headers=bearer(token))

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "30"
