"""
API Integration Tests — Products and forecasts against a pre-seeded registry.
"""

import pytest
from httpx import AsyncClient

OWNER = "registry-owner"


@pytest.fixture
async def seeded_db(sql_registry):
    """Supplier, product and forecast written straight through the service."""
    supplier_id = await sql_registry.register_supplier(OWNER, "Acme Components", 90, 90, 80, 70)
    product_id = await sql_registry.add_product(OWNER, "Test Product", "dairy", 25, 3, supplier_id)
    await sql_registry.update_demand_prediction(OWNER, product_id, 4, 100, 85)
    return {"supplier_id": supplier_id, "product_id": product_id}


@pytest.mark.asyncio
class TestProductsIntegration:
    async def test_get_product_by_id(self, client: AsyncClient, seeded_db):
        resp = await client.get(f"/api/v1/products/{seeded_db['product_id']}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["name"] == "Test Product"
        assert data["category"] == "dairy"
        assert data["demand_forecast"] == 100
        assert data["optimal_inventory"] == 120

    async def test_get_product_not_found(self, client: AsyncClient):
        resp = await client.get("/api/v1/products/99")
        assert resp.status_code == 404
        assert resp.json()["error"] == "product_not_found"

    async def test_next_product_gets_next_id(self, client: AsyncClient, seeded_db):
        resp = await client.post(
            "/api/v1/products/",
            json={"name": "Organic Milk", "category": "dairy", "unit_cost": 2, "supplier_id": seeded_db["supplier_id"]},
        )
        assert resp.status_code == 201
        assert resp.json()["product_id"] == seeded_db["product_id"] + 1

    async def test_category_too_long(self, client: AsyncClient, seeded_db):
        resp = await client.post(
            "/api/v1/products/",
            json={"name": "Milk", "category": "x" * 31, "supplier_id": seeded_db["supplier_id"]},
        )
        assert resp.status_code == 422

    async def test_value_includes_seeded_inventory(self, client: AsyncClient, seeded_db):
        stats = (await client.get("/api/v1/optimization/stats")).json()
        assert stats["total_supply_chain_value"] == 75
        assert stats["next_product_id"] == 2


@pytest.mark.asyncio
class TestForecastReads:
    async def test_prediction_for_seeded_period(self, client: AsyncClient, seeded_db):
        resp = await client.get(f"/api/v1/forecasts/{seeded_db['product_id']}/4")
        assert resp.status_code == 200
        data = resp.json()
        assert data["predicted_demand"] == 100
        assert data["confidence_level"] == 85
        assert data["market_trends"] == 95
        assert data["historical_accuracy"] == 88

    async def test_other_period_missing(self, client: AsyncClient, seeded_db):
        resp = await client.get(f"/api/v1/forecasts/{seeded_db['product_id']}/5")
        assert resp.status_code == 404
