"""
BillSense AI Backend — Invoice Route Tests
==========================================

What:  /api/invoices end to end: HTTP → auth gate → service → SQLite.

What we test:
    ✅ Create {client, amount} → 201 with generated id and amount
    ✅ Create then fetch returns the same fields; repeated GET is stable
    ✅ Unknown, malformed and foreign ids → 404
    ✅ List is scoped to the caller and newest first
    ✅ Partial update, delete, and bad bodies → 400
    ✅ Non-finite or oversized money values → 400
    ✅ Trailing-slash collection path behaves like the bare one
"""

import uuid

import pytest

from conftest import bearer


class TestCreateInvoice:

    @pytest.mark.asyncio
    async def test_create_minimal_invoice(self, client, register_user):
        token, _ = await register_user()

        response = await client.post(
            "/api/invoices", json={"client": "Acme", "amount": 500}, headers=bearer(token)
        )

        assert response.status_code == 201
        body = response.json()
        uuid.UUID(body["id"])
        assert body["client"] == "Acme"
        assert body["amount"] == 500
        assert body["status"] == "unpaid"
        assert body["invoice_number"].startswith("INV-")

    @pytest.mark.asyncio
    async def test_create_with_items_computes_totals(self, client, register_user):
        token, _ = await register_user()

        response = await client.post(
            "/api/invoices",
            json={
                "client": "Globex",
                "invoice_number": "GX-7",
                "due_date": "2030-01-31",
                "items": [
                    {"name": "Consulting", "quantity": 4, "unit_price": 125, "tax_percent": 10},
                    {"name": "Travel", "quantity": 1, "unit_price": 80},
                ],
            },
            headers=bearer(token),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["invoice_number"] == "GX-7"
        assert body["subtotal"] == 580.0
        assert body["tax_total"] == 50.0
        assert body["amount"] == 630.0
        assert body["items"][0]["total"] == 550.0
        assert body["due_date"] == "2030-01-31"

    @pytest.mark.asyncio
    async def test_create_then_fetch_round_trip(self, client, register_user):
        token, _ = await register_user()
        created = (await client.post(
            "/api/invoices",
            json={"client": "Initech", "amount": 99.5, "notes": "Net 30", "client_email": "ap@initech.test"},
            headers=bearer(token),
        )).json()

        fetched = await client.get(f"/api/invoices/{created['id']}", headers=bearer(token))

        assert fetched.status_code == 200
        body = fetched.json()
        for field in ("id", "client", "amount", "notes", "client_email", "invoice_number", "status"):
            assert body[field] == created[field]

    @pytest.mark.asyncio
    async def test_repeated_get_is_stable(self, client, register_user):
        token, _ = await register_user()
        created = (await client.post(
            "/api/invoices", json={"client": "Acme", "amount": 10}, headers=bearer(token)
        )).json()

        first = await client.get(f"/api/invoices/{created['id']}", headers=bearer(token))
        second = await client.get(f"/api/invoices/{created['id']}", headers=bearer(token))

        assert first.json() == second.json()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"amount": 10},
            {"client": "Acme"},
            {"client": "", "amount": 10},
            {"client": "Acme", "amount": -1},
            {"client": "Acme", "amount": 10, "status": "overdue"},
            {"client": "Acme", "amount": "lots"},
        ],
    )
    async def test_invalid_body_is_400(self, client, register_user, payload):
        token, _ = await register_user()

        response = await client.post("/api/invoices", json=payload, headers=bearer(token))

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"


class TestMoneyLimits:

    @pytest.mark.asyncio
    async def test_infinite_amount_is_400(self, client, register_user):
        token, _ = await register_user()

        response = await client.post(
            "/api/invoices",
            content=b'{"client": "Acme", "amount": Infinity}',
            headers={**bearer(token), "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

        listing = await client.get("/api/invoices", headers=bearer(token))
        assert listing.json() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"client": "Acme", "amount": 10_000_000_000},
            {"client": "Acme", "items": [{"name": "X", "quantity": 1e308, "unit_price": 1e308}]},
            {"client": "Acme", "items": [{"name": "X", "quantity": 100_000, "unit_price": 100_000}]},
            {
                "client": "Acme",
                "items": [
                    {"name": "A", "quantity": 1, "unit_price": 6_000_000_000},
                    {"name": "B", "quantity": 1, "unit_price": 6_000_000_000},
                ],
            },
        ],
    )
    async def test_out_of_range_money_is_400(self, client, register_user, payload):
        token, _ = await register_user()

        response = await client.post("/api/invoices", json=payload, headers=bearer(token))

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_largest_amount_is_accepted(self, client, register_user):
        token, _ = await register_user()

        response = await client.post(
            "/api/invoices", json={"client": "Acme", "amount": 9_999_999_999.99}, headers=bearer(token)
        )

        assert response.status_code == 201
        assert response.json()["amount"] == 9_999_999_999.99

    @pytest.mark.asyncio
    async def test_update_with_overflowing_items_is_400(self, client, register_user):
        token, _ = await register_user()
        created = (await client.post(
            "/api/invoices", json={"client": "Acme", "amount": 500}, headers=bearer(token)
        )).json()

        response = await client.put(
            f"/api/invoices/{created['id']}",
            json={"items": [{"name": "X", "quantity": 1e308, "unit_price": 1e308}]},
            headers=bearer(token),
        )

        assert response.status_code == 400
        fetched = await client.get(f"/api/invoices/{created['id']}", headers=bearer(token))
        assert fetched.json()["amount"] == 500


class TestTrailingSlash:

    @pytest.mark.asyncio
    async def test_create_with_trailing_slash(self, client, register_user):
        token, _ = await register_user()

        response = await client.post(
            "/api/invoices/", json={"client": "Acme", "amount": 42}, headers=bearer(token)
        )

        assert response.status_code == 201
        assert response.json()["amount"] == 42

    @pytest.mark.asyncio
    async def test_list_with_trailing_slash(self, client, register_user):
        token, _ = await register_user()
        await client.post("/api/invoices", json={"client": "Acme", "amount": 1}, headers=bearer(token))

        response = await client.get("/api/invoices/", headers=bearer(token))

        assert response.status_code == 200
        assert len(response.json()) == 1


class TestFetchAndOwnership:

    @pytest.mark.asyncio
    async def test_unknown_id_is_404(self, client, register_user):
        token, _ = await register_user()

        response = await client.get(f"/api/invoices/{uuid.uuid4()}", headers=bearer(token))

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_malformed_id_is_404(self, client, register_user):
        token, _ = await register_user()

        response = await client.get("/api/invoices/12345", headers=bearer(token))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_other_users_invoice_is_404(self, client, register_user):
        owner_token, _ = await register_user()
        intruder_token, _ = await register_user()
        created = (await client.post(
            "/api/invoices", json={"client": "Acme", "amount": 500}, headers=bearer(owner_token)
        )).json()

        for method in ("GET", "PUT", "DELETE"):
            response = await client.request(
                method, f"/api/invoices/{created['id']}", json={"status": "paid"},
                headers=bearer(intruder_token),
            )
            assert response.status_code == 404, method

        still_there = await client.get(f"/api/invoices/{created['id']}", headers=bearer(owner_token))
        assert still_there.json()["status"] == "unpaid"

    @pytest.mark.asyncio
    async def test_list_is_scoped_and_newest_first(self, client, register_user):
        token, _ = await register_user()
        other_token, _ = await register_user()
        for name in ("First", "Second", "Third"):
            await client.post("/api/invoices", json={"client": name, "amount": 1}, headers=bearer(token))
        await client.post("/api/invoices", json={"client": "Other", "amount": 1}, headers=bearer(other_token))

        response = await client.get("/api/invoices", headers=bearer(token))

        assert response.status_code == 200
        assert [inv["client"] for inv in response.json()] == ["Third", "Second", "First"]
        assert response.headers["X-Total-Count"] == "3"


class TestUpdateAndDelete:

    @pytest.mark.asyncio
    async def test_partial_update(self, client, register_user):
        token, _ = await register_user()
        created = (await client.post(
            "/api/invoices", json={"client": "Acme", "amount": 500, "notes": "keep"}, headers=bearer(token)
        )).json()

        response = await client.put(
            f"/api/invoices/{created['id']}", json={"status": "paid"}, headers=bearer(token)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "paid"
        assert body["notes"] == "keep"
        assert body["amount"] == 500

    @pytest.mark.asyncio
    async def test_replacing_items_recomputes_amount(self, client, register_user):
        token, _ = await register_user()
        created = (await client.post(
            "/api/invoices", json={"client": "Acme", "amount": 500}, headers=bearer(token)
        )).json()

        response = await client.put(
            f"/api/invoices/{created['id']}",
            json={"items": [{"name": "Audit", "quantity": 2, "unit_price": 40}]},
            headers=bearer(token),
        )

        assert response.json()["amount"] == 80.0

    @pytest.mark.asyncio
    async def test_delete_then_fetch_is_404(self, client, register_user):
        token, _ = await register_user()
        created = (await client.post(
            "/api/invoices", json={"client": "Acme", "amount": 1}, headers=bearer(token)
        )).json()

        deleted = await client.delete(f"/api/invoices/{created['id']}", headers=bearer(token))
        assert deleted.status_code == 200
        assert deleted.json() == {"message": "Invoice deleted successfully"}

        response = await client.get(f"/api/invoices/{created['id']}", headers=bearer(token))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_unknown_is_404(self, client, register_user):
        token, _ = await register_user()
        response = await client.delete(f"/api/invoices/{uuid.uuid4()}", headers=bearer(token))
        assert response.status_code == 404
