"""
Forecasts Router — Demand prediction updates.
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from api.deps import get_current_user, get_registry
from registry.service import SupplyChainRegistry

router = APIRouter(prefix="/api/v1/forecasts", tags=["forecasts"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class ForecastUpdate(BaseModel):
    predicted_demand: int = Field(..., ge=0)
    confidence_level: int = Field(..., ge=0)


class ForecastUpdateResult(BaseModel):
    success: bool
    product_id: int
    forecast_period: int
    demand_forecast: int
    optimal_inventory: int


class PredictionResponse(BaseModel):
    product_id: int
    forecast_period: int
    predicted_demand: int
    confidence_level: int
    seasonal_factor: int
    market_trends: int
    historical_accuracy: int
    model_version: str
    recorded_at: int

    model_config = {"from_attributes": True}


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.put("/{product_id}/{period}", response_model=ForecastUpdateResult)
async def update_demand_prediction(
    product_id: int,
    period: int,
    payload: ForecastUpdate,
    registry: SupplyChainRegistry = Depends(get_registry),
    user: dict = Depends(get_current_user),
):
    """Record a forecast (confidence ≥ 80) and refresh the inventory target."""
    success = await registry.update_demand_prediction(
        user.get("sub"),
        product_id,
        period,
        payload.predicted_demand,
        payload.confidence_level,
    )
    product = await registry.get_product(product_id)
    return ForecastUpdateResult(
        success=success,
        product_id=product_id,
        forecast_period=period,
        demand_forecast=product.demand_forecast,
        optimal_inventory=product.optimal_inventory,
    )


@router.get("/{product_id}/{period}", response_model=PredictionResponse)
async def get_demand_prediction(
    product_id: int,
    period: int,
    registry: SupplyChainRegistry = Depends(get_registry),
):
    prediction = await registry.get_demand_prediction(product_id, period)
    if prediction is None:
        raise HTTPException(status_code=404, detail="Prediction not found")
    return prediction
