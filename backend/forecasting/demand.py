"""
Demand Forecast Updater.

Validates a new forecast, records it as the DemandPrediction for
(product, period), overwrites the product's demand_forecast and then
recomputes the product's optimal inventory in the same unit of work.

The secondary prediction metrics are fixed reference values. No model
is trained or evaluated here.
"""

import structlog

from core.errors import InvalidDataError, PredictionBelowThresholdError, ProductNotFoundError
from db.models import DemandPrediction
from inventory.optimizer import DEFAULT_SAFETY_STOCK_PCT, recompute_optimal_inventory
from registry.store import RecordKind, RegistryStore

logger = structlog.get_logger()

MIN_CONFIDENCE_LEVEL = 80
DEFAULT_MODEL_VERSION = "v2.1-static"

# Static secondary metrics attached to every accepted prediction
SEASONAL_FACTOR = 100
MARKET_TRENDS = 95
HISTORICAL_ACCURACY = 88


async def update_forecast(
    store: RegistryStore,
    product_id: int,
    period: int,
    predicted_demand: int,
    confidence_level: int,
    tick: int,
    min_confidence: int = MIN_CONFIDENCE_LEVEL,
    model_version: str = DEFAULT_MODEL_VERSION,
    safety_stock_pct: int = DEFAULT_SAFETY_STOCK_PCT,
) -> bool:
    """
    Record a forecast and refresh the product's inventory target.

    Raises:
        PredictionBelowThresholdError: confidence_level < min_confidence
        InvalidDataError: negative values or confidence above 100
        ProductNotFoundError: unknown product

    Every check runs before the first write.
    """
    if confidence_level < min_confidence:
        raise PredictionBelowThresholdError(
            f"Confidence {confidence_level} is below the minimum of {min_confidence}"
        )
    if confidence_level > 100:
        raise InvalidDataError(f"Confidence {confidence_level} exceeds 100")
    if predicted_demand < 0 or period < 0:
        raise InvalidDataError("Predicted demand and forecast period must be non-negative")

    product = await store.get(RecordKind.PRODUCT, product_id)
    if product is None:
        raise ProductNotFoundError(f"Product {product_id} not found")

    key = (product_id, period)
    prediction = await store.get(RecordKind.DEMAND_PREDICTION, key)
    if prediction is None:
        prediction = DemandPrediction(product_id=product_id, forecast_period=period)
    prediction.predicted_demand = predicted_demand
    prediction.confidence_level = confidence_level
    prediction.seasonal_factor = SEASONAL_FACTOR
    prediction.market_trends = MARKET_TRENDS
    prediction.historical_accuracy = HISTORICAL_ACCURACY
    prediction.model_version = model_version
    prediction.recorded_at = tick
    await store.put(RecordKind.DEMAND_PREDICTION, key, prediction)

    product.demand_forecast = predicted_demand
    product.last_updated = tick
    await store.put(RecordKind.PRODUCT, product_id, product)

    optimal = await recompute_optimal_inventory(store, product_id, tick, safety_stock_pct)

    logger.info(
        "forecast.updated",
        product_id=product_id,
        period=period,
        predicted_demand=predicted_demand,
        confidence_level=confidence_level,
        optimal_inventory=optimal,
    )
    return True
