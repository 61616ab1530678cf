"""
Products Router — Product catalog entries with inventory targets.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from api.deps import get_current_user, get_registry
from db.models import CATEGORY_MAX_LENGTH, NAME_MAX_LENGTH
from registry.service import SupplyChainRegistry

router = APIRouter(prefix="/api/v1/products", tags=["products"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    category: str = Field(..., min_length=1, max_length=CATEGORY_MAX_LENGTH)
    initial_inventory: int = Field(0, ge=0)
    unit_cost: int = Field(0, ge=0)
    supplier_id: int


class ProductResponse(BaseModel):
    product_id: int
    name: str
    category: str
    current_inventory: int
    optimal_inventory: int
    unit_cost: int
    quality_score: int
    demand_forecast: int
    last_updated: int
    supplier_id: int

    model_config = {"from_attributes": True}


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.post("/", response_model=ProductResponse, status_code=201)
async def add_product(
    product: ProductCreate,
    registry: SupplyChainRegistry = Depends(get_registry),
    user: dict = Depends(get_current_user),
):
    """Create a product. The supplier must already be registered."""
    product_id = await registry.add_product(
        user.get("sub"),
        product.name,
        product.category,
        product.initial_inventory,
        product.unit_cost,
        product.supplier_id,
    )
    return await registry.get_product(product_id)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: int, registry: SupplyChainRegistry = Depends(get_registry)):
    """Get a single product by ID."""
    return await registry.get_product(product_id)
