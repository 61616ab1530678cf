"""
Shipments Router — Shipment creation, tracking and status transitions.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from api.deps import get_current_user, get_registry
from registry.service import SupplyChainRegistry

router = APIRouter(prefix="/api/v1/shipments", tags=["shipments"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class ShipmentCreate(BaseModel):
    product_id: int
    supplier_id: int
    quantity: int = Field(..., ge=0)
    expected_delivery: int = Field(..., ge=0)
    cost: int = Field(0, ge=0)


class ShipmentStatusUpdate(BaseModel):
    status: str
    quality_check: int = Field(0, ge=0)


class ShipmentResponse(BaseModel):
    shipment_id: int
    product_id: int
    supplier_id: int
    quantity: int
    expected_delivery: int
    actual_delivery: int
    quality_check: int
    cost: int
    status: str
    tracking_hash: str

    model_config = {"from_attributes": True}


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.post("/", response_model=ShipmentResponse, status_code=201)
async def create_shipment(
    payload: ShipmentCreate,
    registry: SupplyChainRegistry = Depends(get_registry),
    user: dict = Depends(get_current_user),
):
    """Create an IN_TRANSIT shipment with a fresh tracking hash."""
    shipment_id = await registry.create_shipment(
        user.get("sub"),
        payload.product_id,
        payload.supplier_id,
        payload.quantity,
        payload.expected_delivery,
        payload.cost,
    )
    return await registry.get_shipment(shipment_id)


@router.get("/{shipment_id}", response_model=ShipmentResponse)
async def get_shipment(shipment_id: int, registry: SupplyChainRegistry = Depends(get_registry)):
    return await registry.get_shipment(shipment_id)


@router.patch("/{shipment_id}/status", response_model=ShipmentResponse)
async def update_shipment_status(
    shipment_id: int,
    update: ShipmentStatusUpdate,
    registry: SupplyChainRegistry = Depends(get_registry),
    user: dict = Depends(get_current_user),
):
    """Owner only. IN_TRANSIT → DELIVERED | DELAYED | CANCELLED."""
    return await registry.update_shipment_status(
        user.get("sub"),
        shipment_id,
        update.status,
        update.quality_check,
    )
