"""
OpsLedger Backend — Invoice API Tests
=======================================

What:  CRUD, filters, ordering and page/take validation for /api/invoices.
"""

import uuid

INVOICE = {
    "client": "Acme Corp",
    "industry": "Retail",
    "total_hours_billed": 120,
    "amount_billed_bam": 6000,
    "invoice_status": "Sent",
}


async def create_invoice(client, headers, /, **overrides):
    response = await client.post("/api/invoices", json={**INVOICE, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestInvoiceCrud:

    async def test_create_update_delete(self, test_client, admin_headers):
        invoice = await create_invoice(test_client, admin_headers)
        url = f"/api/invoices/{invoice['id']}"
        assert invoice["invoice_status"] == "Sent"

        response = await test_client.patch(url, json={"invoice_status": "Paid"}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["invoice_status"] == "Paid"
        assert response.json()["client"] == "Acme Corp"

        assert (await test_client.delete(url, headers=admin_headers)).status_code == 204
        assert (await test_client.get(url, headers=admin_headers)).status_code == 404

    async def test_unknown_invoice(self, test_client, admin_headers):
        response = await test_client.get(f"/api/invoices/{uuid.uuid4()}", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "Invoice not found."

    async def test_invalid_status_rejected(self, test_client, admin_headers):
        response = await test_client.post(
            "/api/invoices", json={**INVOICE, "invoice_status": "Lost"}, headers=admin_headers
        )
        assert response.status_code == 400

    async def test_hours_must_be_positive(self, test_client, admin_headers):
        response = await test_client.post(
            "/api/invoices", json={**INVOICE, "total_hours_billed": 0}, headers=admin_headers
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "total_hours_billed"

    async def test_guest_reads_but_cannot_write(self, test_client, admin_headers, guest_headers):
        invoice = await create_invoice(test_client, admin_headers)
        assert (await test_client.get(f"/api/invoices/{invoice['id']}", headers=guest_headers)).status_code == 200

        response = await test_client.patch(
            f"/api/invoices/{invoice['id']}", json={"invoice_status": "Paid"}, headers=guest_headers
        )
        assert response.status_code == 403
        assert response.json()["error"] == "This user is not allowed to update invoices."


class TestInvoiceListing:

    async def test_filters(self, test_client, admin_headers):
        await create_invoice(test_client, admin_headers)
        await create_invoice(test_client, admin_headers, client="Globex", invoice_status="Paid")

        response = await test_client.get("/api/invoices?invoice_status=Paid", headers=admin_headers)
        assert [i["client"] for i in response.json()["invoices"]] == ["Globex"]

        response = await test_client.get("/api/invoices?client=acme", headers=admin_headers)
        assert [i["client"] for i in response.json()["invoices"]] == ["Acme Corp"]

    async def test_order_and_pages(self, test_client, admin_headers):
        for amount in (300, 100, 200):
            await create_invoice(test_client, admin_headers, amount_billed_bam=amount)

        response = await test_client.get(
            "/api/invoices?order_by_field=amount_billed_bam&page=2&take=2", headers=admin_headers
        )
        body = response.json()
        assert [i["amount_billed_bam"] for i in body["invoices"]] == [300]
        assert body["page_info"] == {"total": 3, "current_page": 2, "last_page": 2, "per_page": 2}

    async def test_page_past_end_returns_first_page(self, test_client, admin_headers):
        for amount in (300, 100, 200):
            await create_invoice(test_client, admin_headers, amount_billed_bam=amount)

        response = await test_client.get(
            "/api/invoices?order_by_field=amount_billed_bam&page=5&take=2", headers=admin_headers
        )
        body = response.json()
        assert [i["amount_billed_bam"] for i in body["invoices"]] == [100, 200]
        assert body["page_info"]["current_page"] == 1

    async def test_empty_listing(self, test_client, admin_headers):
        response = await test_client.get("/api/invoices", headers=admin_headers)
        assert response.json() == {
            "page_info": {"total": 0, "current_page": 0, "last_page": 0, "per_page": 0},
            "invoices": [],
        }

    async def test_take_over_limit(self, test_client, admin_headers):
        response = await test_client.get("/api/invoices?take=101", headers=admin_headers)
        assert response.status_code == 400

    async def test_unknown_order_field(self, test_client, admin_headers):
        response = await test_client.get("/api/invoices?order_by_field=secret", headers=admin_headers)
        assert response.status_code == 400
