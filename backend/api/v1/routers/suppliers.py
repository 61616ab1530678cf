"""
Suppliers Router — Registration, performance updates and scoring.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from api.deps import get_current_user, get_registry
from db.models import NAME_MAX_LENGTH
from registry.service import SupplyChainRegistry

router = APIRouter(prefix="/api/v1/suppliers", tags=["suppliers"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class SupplierCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    reliability: int = Field(..., ge=0)
    quality_rating: int = Field(..., ge=0)
    cost_efficiency: int = Field(..., ge=0)
    delivery_performance: int = Field(..., ge=0)


class SupplierUpdate(BaseModel):
    reliability: int | None = Field(None, ge=0)
    quality_rating: int | None = Field(None, ge=0)
    cost_efficiency: int | None = Field(None, ge=0)
    delivery_performance: int | None = Field(None, ge=0)
    active: bool | None = None


class SupplierResponse(BaseModel):
    supplier_id: int
    name: str
    reliability: int
    quality_rating: int
    cost_efficiency: int
    delivery_performance: int
    risk_tier: str
    total_orders: int
    active: bool
    registered_at: int

    model_config = {"from_attributes": True}


class SupplierScoreResponse(BaseModel):
    supplier_id: int
    score: int
    risk_tier: str


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("/", response_model=list[SupplierResponse])
async def list_suppliers(registry: SupplyChainRegistry = Depends(get_registry)):
    """List all registered suppliers in id order."""
    return await registry.list_suppliers()


@router.post("/", response_model=SupplierResponse, status_code=201)
async def register_supplier(
    payload: SupplierCreate,
    registry: SupplyChainRegistry = Depends(get_registry),
    user: dict = Depends(get_current_user),
):
    """Register a supplier. Owner only; percentages above 100 are rejected."""
    supplier_id = await registry.register_supplier(
        user.get("sub"),
        payload.name,
        payload.reliability,
        payload.quality_rating,
        payload.cost_efficiency,
        payload.delivery_performance,
    )
    return await registry.get_supplier(supplier_id)


@router.get("/{supplier_id}", response_model=SupplierResponse)
async def get_supplier(supplier_id: int, registry: SupplyChainRegistry = Depends(get_registry)):
    return await registry.get_supplier(supplier_id)


@router.patch("/{supplier_id}", response_model=SupplierResponse)
async def update_supplier(
    supplier_id: int,
    update: SupplierUpdate,
    registry: SupplyChainRegistry = Depends(get_registry),
    user: dict = Depends(get_current_user),
):
    """Update performance attributes; the risk tier is recomputed."""
    return await registry.update_supplier_performance(
        user.get("sub"),
        supplier_id,
        **update.model_dump(exclude_unset=True),
    )


@router.get("/{supplier_id}/score", response_model=SupplierScoreResponse)
async def get_supplier_score(supplier_id: int, registry: SupplyChainRegistry = Depends(get_registry)):
    """Composite score and risk tier. Unknown suppliers score 0 / UNKNOWN_RISK."""
    return SupplierScoreResponse(
        supplier_id=supplier_id,
        score=await registry.get_supplier_score(supplier_id),
        risk_tier=(await registry.get_supplier_risk(supplier_id)).value,
    )
