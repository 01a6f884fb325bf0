"""
HTTP tests: gates, error envelopes and the main quote flows.
"""

import re
from decimal import Decimal
from unittest.mock import MagicMock, patch

from sqlalchemy import func, select

from rental_quotes.models import Client, Quote

API = "/api/v1"


async def count_rows(db, model):
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


class TestSystem:
    """Tests for unauthenticated system endpoints."""

    async def test_health(self, client):
        """Test the health check reports the environment."""
        response = await client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["environment"] == "testing"

    async def test_public_docs_need_no_key(self, client):
        """Test the public API description is open."""
        response = await client.get(f"{API}/public/docs")
        assert response.status_code == 200
        assert response.json()["authentication"]["headerName"] == "X-API-Key"


# ============================================================
# Gates
# ============================================================


class TestCallerGates:
    """Tests for gateway identity and roles."""

    async def test_missing_identity(self, client):
        """Test requests without X-User-Id are rejected."""
        response = await client.get(f"{API}/clients")
        assert response.status_code == 401
        assert response.json()["error_code"] == "UNAUTHENTICATED"

    async def test_employee_cannot_edit_catalog(self, client, employee_headers, category):
        """Test catalog writes need admin or kierownik."""
        response = await client.post(
            f"{API}/equipment",
            json={"name": "Nagrzewnica", "model": "NG-30", "category_id": str(category.id)},
            headers=employee_headers,
        )
        assert response.status_code == 403
        assert response.json()["error_code"] == "FORBIDDEN"

    async def test_manager_cannot_create_quotes(self, client, manager_headers, existing_client):
        """Test quote creation is limited to admin and employee."""
        response = await client.post(
            f"{API}/quotes",
            json={"client_id": str(existing_client.id)},
            headers=manager_headers,
        )
        assert response.status_code == 403

    async def test_manager_creates_equipment_with_default_tier(self, client, manager_headers, category):
        """Test equipment without tiers comes back with a reminder."""
        response = await client.post(
            f"{API}/equipment",
            json={"name": "Nagrzewnica", "model": "NG-30", "category_id": str(category.id)},
            headers=manager_headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert "100 zł/dzień" in body["message"]
        assert len(body["equipment"]["pricing"]) == 1


class TestApiKeyGates:
    """Tests for the public API keys."""

    async def test_key_required(self, client):
        """Test a request without a key is rejected."""
        response = await client.get(f"{API}/public/equipment")
        assert response.status_code == 401
        assert response.json()["error_code"] == "API_KEY_REQUIRED"

    async def test_invalid_key(self, client):
        """Test an unknown key is rejected."""
        response = await client.get(f"{API}/public/equipment", headers={"X-API-Key": "nope"})
        assert response.status_code == 401
        assert response.json()["error_code"] == "API_KEY_INVALID"

    async def test_key_without_permission(self, client, assessments_api_key):
        """Test a key without quotes:create cannot list equipment."""
        response = await client.get(f"{API}/public/equipment", headers=assessments_api_key)
        assert response.status_code == 403
        assert response.json()["error_code"] == "FORBIDDEN"

    async def test_wildcard_key(self, client, generator):
        """Test "*" grants every permission."""
        response = await client.get(f"{API}/public/equipment", headers={"X-API-Key": "test-full-key"})
        assert response.status_code == 200
        assert [e["name"] for e in response.json()] == ["Agregat 100 kVA"]


# ============================================================
# Public quote flow
# ============================================================


class TestPublicQuotes:
    """Tests for POST /public/quotes."""

    async def test_create_quote_reuses_client(self, client, db, quotes_api_key, existing_client, generator):
        """Test the public quote is a priced draft for the existing client."""
        response = await client.post(
            f"{API}/public/quotes",
            json={
                "client": {"company_name": "Budimex Sp. z o.o."},
                "equipment": [
                    {"equipment_id": str(generator.id), "quantity": 2, "rental_period_days": 10}
                ],
            },
            headers=quotes_api_key,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Quote created successfully"
        quote = body["quote"]
        assert quote["status"] == "draft"
        assert quote["client_id"] == str(existing_client.id)
        assert re.fullmatch(r"\d{2,}/\d{2}\.\d{4}", quote["quote_number"])
        assert Decimal(quote["total_net"]) == Decimal("7000.00")
        assert Decimal(quote["total_gross"]) == Decimal("8610.00")
        assert await count_rows(db, Client) == 1

    async def test_unpriced_line_rejects_request(self, client, db, quotes_api_key, generator, unpriced_equipment):
        """Test one unpriced line gives 422 and stores nothing."""
        response = await client.post(
            f"{API}/public/quotes",
            json={
                "client": {"company_name": "Nowa Firma"},
                "equipment": [
                    {"equipment_id": str(generator.id), "rental_period_days": 3},
                    {"equipment_id": str(unpriced_equipment.id), "rental_period_days": 3},
                ],
            },
            headers=quotes_api_key,
        )

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "NO_PRICING_AVAILABLE"
        assert body["extra"]["equipment_id"] == str(unpriced_equipment.id)
        assert await count_rows(db, Quote) == 0
        assert await count_rows(db, Client) == 0

    async def test_unknown_equipment(self, client, quotes_api_key):
        """Test an unknown equipment id gives 404."""
        response = await client.post(
            f"{API}/public/quotes",
            json={
                "client": {"company_name": "Nowa Firma"},
                "equipment": [
                    {"equipment_id": "00000000-0000-0000-0000-000000000000", "rental_period_days": 3}
                ],
            },
            headers=quotes_api_key,
        )
        assert response.status_code == 404
        assert response.json()["error_code"] == "RESOURCE_NOT_FOUND"


class TestPublicAssessments:
    """Tests for the public needs assessment endpoints."""

    async def test_grouped_questions(self, client, assessments_api_key, questions):
        """Test active questions are grouped by category."""
        response = await client.get(f"{API}/public/needs-assessment/questions", headers=assessments_api_key)
        assert response.status_code == 200
        body = response.json()
        assert body["categories"] == ["Logistyka", "Zasilanie"]
        assert len(body["questions"]["Zasilanie"]) == 1

    async def test_submit_assessment(self, client, assessments_api_key, questions):
        """Test a submission is numbered and has no user."""
        response = await client.post(
            f"{API}/public/needs-assessment",
            json={
                "client_company_name": "Budimex Sp. z o.o.",
                "responses": {str(questions[0].id): "100 kW"},
            },
            headers=assessments_api_key,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Needs assessment created successfully"
        assert body["assessment"]["user_id"] is None
        assert re.fullmatch(r"\d{2,}/\d{2}\.\d{4}", body["assessment"]["response_number"])


# ============================================================
# Staff quote flow
# ============================================================


class TestStaffQuotes:
    """Tests for the staff quote endpoints."""

    async def test_create_list_and_print(self, client, employee_headers, existing_client, generator):
        """Test a created quote is listed and printable."""
        created = await client.post(
            f"{API}/quotes",
            json={
                "client_id": str(existing_client.id),
                "items": [{"equipment_id": str(generator.id), "rental_period_days": 5}],
            },
            headers=employee_headers,
        )
        assert created.status_code == 201
        quote = created.json()
        assert quote["created_by_name"] == "Piotr Pracownik"
        assert Decimal(quote["items"][0]["total_price"]) == Decimal("1750.00")

        listed = await client.get(f"{API}/quotes", params={"per_page": 10}, headers=employee_headers)
        assert listed.status_code == 200
        page = listed.json()
        assert page["total"] == 1
        assert page["total_pages"] == 1
        assert page["items"][0]["client_company_name"] == "Budimex Sp. z o.o."

        printed = await client.get(f"{API}/quotes/{quote['id']}/print", headers=employee_headers)
        assert printed.status_code == 200
        assert printed.headers["content-type"].startswith("text/html")
        assert quote["quote_number"] in printed.text

    async def test_zero_day_line(self, client, employee_headers, existing_client, generator):
        """Test a zero-day line gives 422 with a business error code."""
        response = await client.post(
            f"{API}/quotes",
            json={
                "client_id": str(existing_client.id),
                "items": [{"equipment_id": str(generator.id), "rental_period_days": 0}],
            },
            headers=employee_headers,
        )
        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_RENTAL_PERIOD"

    async def test_guest_quote(self, client, generator):
        """Test guest quotes need no identity and get a GUE number."""
        response = await client.post(
            f"{API}/quotes/guest",
            json={
                "client": {"company_name": "Gość"},
                "items": [{"equipment_id": str(generator.id), "rental_period_days": 1}],
            },
        )
        assert response.status_code == 201
        body = response.json()
        assert re.fullmatch(r"GUE-\d{4}-\d{6}", body["quote_number"])
        assert body["is_guest_quote"] is True

    async def test_only_admin_deletes(self, client, db, employee_headers, admin_headers, existing_client):
        """Test employees cannot delete quotes but admins can."""
        created = await client.post(
            f"{API}/quotes",
            json={"client_id": str(existing_client.id)},
            headers=employee_headers,
        )
        quote_id = created.json()["id"]

        denied = await client.delete(f"{API}/quotes/{quote_id}", headers=employee_headers)
        assert denied.status_code == 403

        deleted = await client.delete(f"{API}/quotes/{quote_id}", headers=admin_headers)
        assert deleted.status_code == 204
        assert await count_rows(db, Quote) == 0

    async def test_pdf_download(self, client, employee_headers, existing_client):
        """Test the PDF is served as an attachment named after the number."""
        created = await client.post(
            f"{API}/quotes",
            json={"client_id": str(existing_client.id)},
            headers=employee_headers,
        )
        quote = created.json()
        html_class = MagicMock()
        html_class.return_value.write_pdf.return_value = b"%PDF-1.7"

        with patch("rental_quotes.services.document_service._get_weasyprint", return_value=html_class):
            response = await client.get(f"{API}/quotes/{quote['id']}/pdf", headers=employee_headers)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content == b"%PDF-1.7"
        filename = f"oferta_{quote['quote_number'].replace('/', '-')}.pdf"
        assert f'filename="{filename}"' in response.headers["content-disposition"]

    async def test_missing_quote(self, client, employee_headers):
        """Test an unknown id gives the not-found envelope."""
        response = await client.get(
            f"{API}/quotes/00000000-0000-0000-0000-000000000000", headers=employee_headers
        )
        assert response.status_code == 404
        assert response.json()["error_code"] == "RESOURCE_NOT_FOUND"
