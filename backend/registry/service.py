"""
Supply Chain Registry — External operations.

Every mutating call runs as one unit of work under a single process-wide
lock: all validation happens before the first write, the store commits
once at the end, and any error rolls the whole call back. That keeps id
allocation gap-free for failed calls and serializes counter
read-and-increment across concurrent callers.

Owner-only operations check the caller principal against
Settings.owner_principals.
"""

import asyncio
import hashlib
from contextlib import asynccontextmanager
from typing import Any

import structlog

from core.clock import TickClock
from core.config import Settings, get_settings
from core.errors import (
    InvalidDataError,
    ProductNotFoundError,
    ShipmentNotFoundError,
    SupplierNotFoundError,
    UnauthorizedError,
)
from core.security import is_owner
from db.models import (
    CATEGORY_MAX_LENGTH,
    NAME_MAX_LENGTH,
    DemandPrediction,
    Product,
    RegistryCounter,
    RiskTier,
    Shipment,
    ShipmentStatus,
    Supplier,
)
from forecasting.demand import update_forecast
from optimization.cycle import CyclePolicy, CycleToggles, OptimizationCycleOrchestrator
from registry.store import RecordKind, RegistryStore
from scoring.suppliers import (
    RiskThresholds,
    ScoringWeights,
    classify_risk,
    score,
    supplier_risk,
    supplier_score,
)

logger = structlog.get_logger()

SCOPE_MAX_LENGTH = 100


def tracking_hash(shipment_id: int) -> str:
    """SHA-256 of the shipment id as 16 big-endian bytes, hex encoded."""
    return hashlib.sha256(shipment_id.to_bytes(16, "big")).hexdigest()


def _check_percentage(field: str, value: int) -> None:
    if not 0 <= value <= 100:
        raise InvalidDataError(f"{field} must be between 0 and 100, got {value}")


def _check_unsigned(field: str, value: int) -> None:
    if value < 0:
        raise InvalidDataError(f"{field} must be non-negative, got {value}")


def _check_text(field: str, value: str, max_length: int) -> None:
    if not value or len(value) > max_length:
        raise InvalidDataError(f"{field} must be 1-{max_length} characters")


class SupplyChainRegistry:
    """Registry operations over a RegistryStore."""

    def __init__(
        self,
        store: RegistryStore,
        settings: Settings | None = None,
        clock=None,
        lock: asyncio.Lock | None = None,
        orchestrator: OptimizationCycleOrchestrator | None = None,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self.clock = clock or TickClock(self.settings.tick_seconds)
        self.lock = lock or asyncio.Lock()
        self.orchestrator = orchestrator or OptimizationCycleOrchestrator(CyclePolicy.from_settings(self.settings))
        self.weights = ScoringWeights.from_settings(self.settings)
        self.thresholds = RiskThresholds.from_settings(self.settings)

    @asynccontextmanager
    async def _unit_of_work(self):
        async with self.lock:
            try:
                yield
            except Exception:
                await self.store.rollback()
                raise
            await self.store.commit()

    def _require_owner(self, caller: str | None, operation: str) -> None:
        if not is_owner(caller, self.settings):
            logger.warning("registry.unauthorized", caller=caller, operation=operation)
            raise UnauthorizedError(f"{operation} is restricted to the registry owner")

    # ── Suppliers ──────────────────────────────────────────────────────────

    async def register_supplier(
        self,
        caller: str | None,
        name: str,
        reliability: int,
        quality_rating: int,
        cost_efficiency: int,
        delivery_performance: int,
    ) -> int:
        self._require_owner(caller, "register_supplier")
        _check_text("name", name, NAME_MAX_LENGTH)
        _check_percentage("reliability", reliability)
        _check_percentage("quality_rating", quality_rating)
        _check_percentage("cost_efficiency", cost_efficiency)
        _check_percentage("delivery_performance", delivery_performance)

        async with self._unit_of_work():
            supplier_id = await self.store.next_id(RegistryCounter.NEXT_SUPPLIER_ID)
            supplier = Supplier(
                supplier_id=supplier_id,
                name=name,
                reliability=reliability,
                quality_rating=quality_rating,
                cost_efficiency=cost_efficiency,
                delivery_performance=delivery_performance,
                total_orders=0,
                active=True,
                registered_at=self.clock.now(),
            )
            supplier.risk_tier = classify_risk(supplier, self.thresholds).value
            await self.store.put(RecordKind.SUPPLIER, supplier_id, supplier)

        logger.info(
            "registry.supplier_registered",
            supplier_id=supplier_id,
            risk_tier=supplier.risk_tier,
            score=score(supplier, self.weights),
        )
        return supplier_id

    async def update_supplier_performance(
        self,
        caller: str | None,
        supplier_id: int,
        reliability: int | None = None,
        quality_rating: int | None = None,
        cost_efficiency: int | None = None,
        delivery_performance: int | None = None,
        active: bool | None = None,
    ) -> Supplier:
        self._require_owner(caller, "update_supplier_performance")
        changes = {
            "reliability": reliability,
            "quality_rating": quality_rating,
            "cost_efficiency": cost_efficiency,
            "delivery_performance": delivery_performance,
        }
        changes = {field: value for field, value in changes.items() if value is not None}
        for field, value in changes.items():
            _check_percentage(field, value)

        async with self._unit_of_work():
            supplier = await self.store.get(RecordKind.SUPPLIER, supplier_id)
            if supplier is None:
                raise SupplierNotFoundError(f"Supplier {supplier_id} not found")
            old_tier = supplier.risk_tier
            for field, value in changes.items():
                setattr(supplier, field, value)
            if active is not None:
                supplier.active = active
            supplier.risk_tier = classify_risk(supplier, self.thresholds).value
            await self.store.put(RecordKind.SUPPLIER, supplier_id, supplier)

        logger.info(
            "registry.supplier_updated",
            supplier_id=supplier_id,
            fields=sorted(changes),
            old_risk_tier=old_tier,
            new_risk_tier=supplier.risk_tier,
        )
        return supplier

    async def get_supplier(self, supplier_id: int) -> Supplier:
        supplier = await self.store.get(RecordKind.SUPPLIER, supplier_id)
        if supplier is None:
            raise SupplierNotFoundError(f"Supplier {supplier_id} not found")
        return supplier

    async def list_suppliers(self) -> list[Supplier]:
        return await self.store.scan(RecordKind.SUPPLIER)

    async def get_supplier_score(self, supplier_id: int) -> int:
        return await supplier_score(self.store, supplier_id, self.weights)

    async def get_supplier_risk(self, supplier_id: int) -> RiskTier:
        return await supplier_risk(self.store, supplier_id, self.thresholds)

    # ── Products ───────────────────────────────────────────────────────────

    async def add_product(
        self,
        caller: str | None,
        name: str,
        category: str,
        initial_inventory: int,
        unit_cost: int,
        supplier_id: int,
    ) -> int:
        _check_text("name", name, NAME_MAX_LENGTH)
        _check_text("category", category, CATEGORY_MAX_LENGTH)
        _check_unsigned("initial_inventory", initial_inventory)
        _check_unsigned("unit_cost", unit_cost)

        async with self._unit_of_work():
            supplier = await self.store.get(RecordKind.SUPPLIER, supplier_id)
            if supplier is None:
                raise SupplierNotFoundError(f"Supplier {supplier_id} not found")

            product_id = await self.store.next_id(RegistryCounter.NEXT_PRODUCT_ID)
            product = Product(
                product_id=product_id,
                name=name,
                category=category,
                current_inventory=initial_inventory,
                optimal_inventory=0,
                unit_cost=unit_cost,
                quality_score=supplier.quality_rating,
                demand_forecast=0,
                last_updated=self.clock.now(),
                supplier_id=supplier_id,
            )
            await self.store.put(RecordKind.PRODUCT, product_id, product)
            await self.store.add_to_count(RegistryCounter.TOTAL_SUPPLY_CHAIN_VALUE, initial_inventory * unit_cost)

        logger.info(
            "registry.product_added",
            product_id=product_id,
            supplier_id=supplier_id,
            caller=caller,
            initial_inventory=initial_inventory,
        )
        return product_id

    async def get_product(self, product_id: int) -> Product:
        product = await self.store.get(RecordKind.PRODUCT, product_id)
        if product is None:
            raise ProductNotFoundError(f"Product {product_id} not found")
        return product

    # ── Shipments ──────────────────────────────────────────────────────────

    async def create_shipment(
        self,
        caller: str | None,
        product_id: int,
        supplier_id: int,
        quantity: int,
        expected_delivery: int,
        cost: int,
    ) -> int:
        _check_unsigned("quantity", quantity)
        _check_unsigned("expected_delivery", expected_delivery)
        _check_unsigned("cost", cost)

        async with self._unit_of_work():
            if await self.store.get(RecordKind.PRODUCT, product_id) is None:
                raise ProductNotFoundError(f"Product {product_id} not found")
            supplier = await self.store.get(RecordKind.SUPPLIER, supplier_id)
            if supplier is None:
                raise SupplierNotFoundError(f"Supplier {supplier_id} not found")

            shipment_id = await self.store.next_id(RegistryCounter.NEXT_SHIPMENT_ID)
            shipment = Shipment(
                shipment_id=shipment_id,
                product_id=product_id,
                supplier_id=supplier_id,
                quantity=quantity,
                expected_delivery=expected_delivery,
                actual_delivery=0,
                quality_check=0,
                cost=cost,
                status=ShipmentStatus.IN_TRANSIT.value,
                tracking_hash=tracking_hash(shipment_id),
            )
            await self.store.put(RecordKind.SHIPMENT, shipment_id, shipment)

            supplier.total_orders += 1
            await self.store.put(RecordKind.SUPPLIER, supplier_id, supplier)
            await self.store.add_to_count(RegistryCounter.TOTAL_SUPPLY_CHAIN_VALUE, cost)

        logger.info(
            "registry.shipment_created",
            shipment_id=shipment_id,
            product_id=product_id,
            supplier_id=supplier_id,
            caller=caller,
            quantity=quantity,
        )
        return shipment_id

    async def update_shipment_status(
        self,
        caller: str | None,
        shipment_id: int,
        status: str,
        quality_check: int = 0,
    ) -> Shipment:
        """
        Move an IN_TRANSIT shipment to DELIVERED, DELAYED or CANCELLED.

        Delivery stamps actual_delivery and adds the quantity to the
        product's current inventory.
        """
        self._require_owner(caller, "update_shipment_status")
        try:
            new_status = ShipmentStatus(status)
        except ValueError:
            raise InvalidDataError(f"Unknown shipment status '{status}'") from None
        if new_status == ShipmentStatus.IN_TRANSIT:
            raise InvalidDataError("Shipments cannot move back to IN_TRANSIT")
        _check_percentage("quality_check", quality_check)

        async with self._unit_of_work():
            shipment = await self.store.get(RecordKind.SHIPMENT, shipment_id)
            if shipment is None:
                raise ShipmentNotFoundError(f"Shipment {shipment_id} not found")
            if shipment.status != ShipmentStatus.IN_TRANSIT.value:
                raise InvalidDataError(f"Cannot move shipment in status '{shipment.status}'")

            product = None
            if new_status == ShipmentStatus.DELIVERED:
                product = await self.store.get(RecordKind.PRODUCT, shipment.product_id)
                if product is None:
                    raise ProductNotFoundError(f"Product {shipment.product_id} not found")

            tick = self.clock.now()
            shipment.status = new_status.value
            shipment.quality_check = quality_check
            if product is not None:
                shipment.actual_delivery = tick
                product.current_inventory += shipment.quantity
                product.last_updated = tick
                await self.store.put(RecordKind.PRODUCT, product.product_id, product)
            await self.store.put(RecordKind.SHIPMENT, shipment_id, shipment)

        logger.info("registry.shipment_status_changed", shipment_id=shipment_id, status=new_status.value)
        return shipment

    async def get_shipment(self, shipment_id: int) -> Shipment:
        shipment = await self.store.get(RecordKind.SHIPMENT, shipment_id)
        if shipment is None:
            raise ShipmentNotFoundError(f"Shipment {shipment_id} not found")
        return shipment

    # ── Forecasts ──────────────────────────────────────────────────────────

    async def update_demand_prediction(
        self,
        caller: str | None,
        product_id: int,
        period: int,
        predicted_demand: int,
        confidence_level: int,
    ) -> bool:
        async with self._unit_of_work():
            accepted = await update_forecast(
                self.store,
                product_id,
                period,
                predicted_demand,
                confidence_level,
                tick=self.clock.now(),
                min_confidence=self.settings.min_forecast_confidence,
                model_version=self.settings.forecast_model_version,
                safety_stock_pct=self.settings.safety_stock_pct,
            )
        return accepted

    async def get_demand_prediction(self, product_id: int, period: int) -> DemandPrediction | None:
        return await self.store.get(RecordKind.DEMAND_PREDICTION, (product_id, period))

    # ── Optimization ───────────────────────────────────────────────────────

    async def run_optimization_cycle(
        self,
        caller: str | None,
        scope: str,
        toggles: CycleToggles | None = None,
    ) -> dict[str, Any]:
        self._require_owner(caller, "run_optimization_cycle")
        if len(scope) > SCOPE_MAX_LENGTH:
            raise InvalidDataError(f"scope must be at most {SCOPE_MAX_LENGTH} characters")

        async with self._unit_of_work():
            report = await self.orchestrator.run(self.store, scope, toggles or CycleToggles(), self.clock.now())
        return report

    async def set_supply_chain_value(self, caller: str | None, value: int) -> int:
        self._require_owner(caller, "set_supply_chain_value")
        _check_unsigned("value", value)
        async with self._unit_of_work():
            await self.store.set_count(RegistryCounter.TOTAL_SUPPLY_CHAIN_VALUE, value)
        logger.info("registry.supply_chain_value_set", value=value)
        return value

    async def get_stats(self) -> dict[str, int]:
        return {counter.value: await self.store.count(counter) for counter in RegistryCounter}
