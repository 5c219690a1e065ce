"""API endpoint integration tests.

Tests the FastAPI endpoints against the stub payroll provider.
"""

from decimal import Decimal

import pytest
from httpx import AsyncClient

from payroll_sync.catalog.types import RateCatalog
from payroll_sync.providers.stub import StubPayrollProvider

from tests.integration.conftest import AUTH_HEADERS

pytestmark = pytest.mark.asyncio

JOHN_MONDAY = {
    "employeeName": "John Worde",
    "date": "2024-01-01",
    "startTime": "06:00",
    "endTime": "18:00",
}


class TestHealthEndpoints:
    """Test health check endpoints."""

    async def test_health_check(self, client: AsyncClient):
        """Health endpoint should return 200."""
        response = await client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] in ("healthy", "degraded")
        assert "timestamp" in data

    async def test_readiness_check(self, client: AsyncClient):
        response = await client.get("/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    async def test_liveness_check(self, client: AsyncClient):
        response = await client.get("/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestComputePayLines:
    """Test POST /api/v1/pay-lines/compute."""

    async def test_tiered_day_with_lunch(self, client: AsyncClient):
        """A 12 hour day with a 30 minute unpaid lunch splits 480/120/90."""
        response = await client.post(
            "/api/v1/pay-lines/compute",
            json={
                "entries": [JOHN_MONDAY],
                "rules": {"company": {"lunch": {"minutes": 30}}},
                "base_rates": {"John Worde": "30"},
            },
        )

        assert response.status_code == 200, response.text
        data = response.json()
        assert [(l["category"], l["minutes"]) for l in data["lines"]] == [
            ("ordinary", 480),
            ("OT1.5", 120),
            ("OT2.0", 90),
        ]
        assert Decimal(data["total_cost"]) == Decimal("420.00")
        assert data["by_employee"]["John Worde"]["minutes"] == 690
        assert data["warnings"] == []

    async def test_invalid_ruleset_rejected(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/pay-lines/compute",
            json={"entries": [JOHN_MONDAY], "rules": {"company": {"tiers": []}}},
        )

        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_RULESET"

    async def test_half_open_period_rejected(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/pay-lines/compute",
            json={"entries": [], "period_start": "2024-01-01"},
        )

        assert response.status_code == 422


class TestSync:
    """Test POST /api/v1/sync."""

    async def test_requires_bearer_token(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/sync",
            headers={"Xero-Tenant-Id": "tenant-1"},
            json={"entries": [], "period_start": "2024-01-01", "period_end": "2024-01-07"},
        )

        assert response.status_code == 401

    async def test_requires_tenant(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/sync",
            headers={"Authorization": "Bearer test-token"},
            json={"entries": [], "period_start": "2024-01-01", "period_end": "2024-01-07"},
        )

        assert response.status_code == 400

    async def test_create_then_match(self, client: AsyncClient, stub_provider: StubPayrollProvider):
        body = {"entries": [JOHN_MONDAY], "period_start": "2024-01-01", "period_end": "2024-01-07"}

        first = await client.post("/api/v1/sync", headers=AUTH_HEADERS, json=body)
        second = await client.post("/api/v1/sync", headers=AUTH_HEADERS, json=body)

        assert first.status_code == 200, first.text
        assert [d["status"] for d in first.json()["decisions"]] == ["CREATE"]
        assert first.json()["success"] is True
        assert [d["status"] for d in second.json()["decisions"]] == ["EXISTS_MATCH"]
        assert second.json()["counts"]["EXISTS_MATCH"] == 1
        assert stub_provider.create_calls == 1

    async def test_period_too_long(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/sync",
            headers=AUTH_HEADERS,
            json={"entries": [], "period_start": "2024-01-01", "period_end": "2024-02-09"},
        )

        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_PERIOD"

    async def test_empty_catalog(self, client: AsyncClient, stub_provider: StubPayrollProvider):
        stub_provider.catalog = RateCatalog()

        response = await client.post(
            "/api/v1/sync",
            headers=AUTH_HEADERS,
            json={"entries": [], "period_start": "2024-01-01", "period_end": "2024-01-07"},
        )

        assert response.status_code == 502
        assert response.json()["code"] == "CATALOG_UNAVAILABLE"


class TestSuggestedPeriod:
    """Test GET /api/v1/periods/suggested."""

    async def test_weekly_calendar(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/periods/suggested", params={"on": "2024-01-10"}, headers=AUTH_HEADERS
        )

        assert response.status_code == 200, response.text
        assert response.json() == {
            "period_start": "2024-01-08",
            "period_end": "2024-01-14",
            "day_count": 7,
        }
