"""
Tests for the Demand Forecast Updater.

Covers:
  - Confidence threshold (79 rejected, 80 accepted)
  - Product existence check
  - Prediction upsert with static secondary metrics
  - Follow-up inventory target recomputation
  - Idempotent repeated updates
"""

import pytest

from core.errors import InvalidDataError, PredictionBelowThresholdError, ProductNotFoundError
from db.models import Product
from forecasting.demand import (
    HISTORICAL_ACCURACY,
    MARKET_TRENDS,
    SEASONAL_FACTOR,
    update_forecast,
)
from registry.store import RecordKind


@pytest.fixture
async def store_with_product(memory_store):
    await memory_store.put(
        RecordKind.PRODUCT,
        1,
        Product(
            product_id=1,
            name="Widget",
            category="hardware",
            current_inventory=10,
            optimal_inventory=0,
            unit_cost=5,
            quality_score=90,
            demand_forecast=0,
            last_updated=0,
            supplier_id=1,
        ),
    )
    await memory_store.commit()
    return memory_store


@pytest.mark.asyncio
class TestUpdateForecast:
    async def test_confidence_79_rejected(self, store_with_product):
        with pytest.raises(PredictionBelowThresholdError):
            await update_forecast(store_with_product, 1, 1, 50, 79, tick=10)
        assert await store_with_product.get(RecordKind.DEMAND_PREDICTION, (1, 1)) is None

    async def test_confidence_80_accepted(self, store_with_product):
        assert await update_forecast(store_with_product, 1, 1, 50, 80, tick=10) is True

        product = await store_with_product.get(RecordKind.PRODUCT, 1)
        assert product.demand_forecast == 50
        assert product.optimal_inventory == 60
        assert product.last_updated == 10

    async def test_threshold_checked_before_existence(self, store_with_product):
        """Low confidence on a missing product reports the threshold failure."""
        with pytest.raises(PredictionBelowThresholdError):
            await update_forecast(store_with_product, 999, 1, 50, 10, tick=10)

    async def test_missing_product(self, store_with_product):
        with pytest.raises(ProductNotFoundError):
            await update_forecast(store_with_product, 999, 1, 50, 90, tick=10)
        assert await store_with_product.scan(RecordKind.DEMAND_PREDICTION) == []

    async def test_confidence_above_100_rejected(self, store_with_product):
        with pytest.raises(InvalidDataError):
            await update_forecast(store_with_product, 1, 1, 50, 101, tick=10)

    async def test_prediction_carries_static_metrics(self, store_with_product):
        await update_forecast(store_with_product, 1, 7, 42, 95, tick=10, model_version="v-test")

        prediction = await store_with_product.get(RecordKind.DEMAND_PREDICTION, (1, 7))
        assert prediction.predicted_demand == 42
        assert prediction.confidence_level == 95
        assert prediction.seasonal_factor == SEASONAL_FACTOR == 100
        assert prediction.market_trends == MARKET_TRENDS == 95
        assert prediction.historical_accuracy == HISTORICAL_ACCURACY == 88
        assert prediction.model_version == "v-test"

    async def test_repeated_identical_update_is_idempotent(self, store_with_product):
        await update_forecast(store_with_product, 1, 1, 50, 85, tick=10)
        await update_forecast(store_with_product, 1, 1, 50, 85, tick=10)

        predictions = await store_with_product.scan(RecordKind.DEMAND_PREDICTION)
        assert len(predictions) == 1
        product = await store_with_product.get(RecordKind.PRODUCT, 1)
        assert (product.demand_forecast, product.optimal_inventory) == (50, 60)

    async def test_new_period_adds_prediction_and_overwrites_forecast(self, store_with_product):
        await update_forecast(store_with_product, 1, 1, 50, 85, tick=10)
        await update_forecast(store_with_product, 1, 2, 100, 85, tick=11)

        assert len(await store_with_product.scan(RecordKind.DEMAND_PREDICTION)) == 2
        product = await store_with_product.get(RecordKind.PRODUCT, 1)
        assert product.demand_forecast == 100
        assert product.optimal_inventory == 120
