"""
Optimization Router — Owner-triggered optimization cycles and registry totals.
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from api.deps import get_current_user, get_registry
from optimization.cycle import CycleToggles
from registry.service import SCOPE_MAX_LENGTH, SupplyChainRegistry

router = APIRouter(prefix="/api/v1/optimization", tags=["optimization"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class CycleRequest(BaseModel):
    scope: str = Field("", max_length=SCOPE_MAX_LENGTH)
    enable_demand_analytics: bool = True
    enable_auto_reorder: bool = True
    enable_supplier_optimization: bool = True
    enable_risk_mitigation: bool = True


class SupplyChainValue(BaseModel):
    value: int = Field(..., ge=0)


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.post("/cycles")
async def run_optimization_cycle(
    request: CycleRequest,
    registry: SupplyChainRegistry = Depends(get_registry),
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    """Run one optimization cycle and return its report. Owner only."""
    toggles = CycleToggles(
        demand_analytics=request.enable_demand_analytics,
        auto_reorder=request.enable_auto_reorder,
        supplier_optimization=request.enable_supplier_optimization,
        risk_mitigation=request.enable_risk_mitigation,
    )
    return await registry.run_optimization_cycle(user.get("sub"), request.scope, toggles)


@router.get("/stats")
async def get_registry_stats(registry: SupplyChainRegistry = Depends(get_registry)) -> dict[str, int]:
    """Allocation counters, total supply chain value and completed cycles."""
    return await registry.get_stats()


@router.put("/value")
async def set_supply_chain_value(
    payload: SupplyChainValue,
    registry: SupplyChainRegistry = Depends(get_registry),
    user: dict = Depends(get_current_user),
) -> dict[str, int]:
    """Overwrite total_supply_chain_value. Owner only."""
    value = await registry.set_supply_chain_value(user.get("sub"), payload.value)
    return {"total_supply_chain_value": value}
