"""
SupplyLedger Database Models

The registry's persisted state is exactly four keyed record maps plus
a small table of scalar counters.

Tables:
  1. suppliers            - Registered suppliers + performance attributes
  2. products             - Product catalog with inventory targets
  3. shipments            - Shipments in flight / delivered
  4. demand_predictions   - Accepted forecasts keyed by (product, period)
  5. registry_counters    - Id allocation counters and process-wide totals

Identifiers are allocated by the registry (registry_counters), never by
database autoincrement, so they are set explicitly on every insert.
"""

from enum import Enum

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    insert,
    select,
)

from db.session import Base


class RiskTier(str, Enum):
    LOW_RISK = "LOW_RISK"
    MODERATE_RISK = "MODERATE_RISK"
    HIGH_RISK = "HIGH_RISK"
    UNKNOWN_RISK = "UNKNOWN_RISK"


class ShipmentStatus(str, Enum):
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    DELAYED = "DELAYED"
    CANCELLED = "CANCELLED"


class RegistryCounter(str, Enum):
    NEXT_PRODUCT_ID = "next_product_id"
    NEXT_SUPPLIER_ID = "next_supplier_id"
    NEXT_SHIPMENT_ID = "next_shipment_id"
    TOTAL_SUPPLY_CHAIN_VALUE = "total_supply_chain_value"
    OPTIMIZATION_CYCLES = "optimization_cycles"


# Allocation counters start at 1, totals at 0.
COUNTER_DEFAULTS = {
    RegistryCounter.NEXT_PRODUCT_ID: 1,
    RegistryCounter.NEXT_SUPPLIER_ID: 1,
    RegistryCounter.NEXT_SHIPMENT_ID: 1,
    RegistryCounter.TOTAL_SUPPLY_CHAIN_VALUE: 0,
    RegistryCounter.OPTIMIZATION_CYCLES: 0,
}

NAME_MAX_LENGTH = 50
CATEGORY_MAX_LENGTH = 30


# ─── 1. Suppliers ───────────────────────────────────────────────────────────


class Supplier(Base):
    __tablename__ = "suppliers"

    supplier_id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(NAME_MAX_LENGTH), nullable=False)
    reliability = Column(Integer, nullable=False)
    quality_rating = Column(Integer, nullable=False)
    cost_efficiency = Column(Integer, nullable=False)
    delivery_performance = Column(Integer, nullable=False)
    risk_tier = Column(String(20), nullable=False)
    total_orders = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)
    registered_at = Column(BigInteger, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("reliability >= 0 AND reliability <= 100", name="ck_supplier_reliability_range"),
        CheckConstraint("quality_rating >= 0 AND quality_rating <= 100", name="ck_supplier_quality_range"),
        CheckConstraint("cost_efficiency >= 0 AND cost_efficiency <= 100", name="ck_supplier_cost_range"),
        CheckConstraint(
            "delivery_performance >= 0 AND delivery_performance <= 100", name="ck_supplier_delivery_range"
        ),
        CheckConstraint("total_orders >= 0", name="ck_supplier_orders_positive"),
        CheckConstraint(
            "risk_tier IN ('LOW_RISK', 'MODERATE_RISK', 'HIGH_RISK')",
            name="ck_supplier_risk_tier",
        ),
    )


# ─── 2. Products ────────────────────────────────────────────────────────────


class Product(Base):
    __tablename__ = "products"

    product_id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(NAME_MAX_LENGTH), nullable=False)
    category = Column(String(CATEGORY_MAX_LENGTH), nullable=False)
    current_inventory = Column(Integer, nullable=False, default=0)
    optimal_inventory = Column(Integer, nullable=False, default=0)  # target, not a constraint
    unit_cost = Column(BigInteger, nullable=False, default=0)
    quality_score = Column(Integer, nullable=False, default=100)
    demand_forecast = Column(Integer, nullable=False, default=0)
    last_updated = Column(BigInteger, nullable=False, default=0)
    supplier_id = Column(Integer, ForeignKey("suppliers.supplier_id"), nullable=False)

    __table_args__ = (
        Index("ix_products_supplier", "supplier_id"),
        CheckConstraint("current_inventory >= 0", name="ck_product_inventory_positive"),
        CheckConstraint("optimal_inventory >= 0", name="ck_product_optimal_positive"),
        CheckConstraint("unit_cost >= 0", name="ck_product_cost_positive"),
        CheckConstraint("demand_forecast >= 0", name="ck_product_forecast_positive"),
        CheckConstraint("quality_score >= 0 AND quality_score <= 100", name="ck_product_quality_range"),
    )


# ─── 3. Shipments ───────────────────────────────────────────────────────────


class Shipment(Base):
    __tablename__ = "shipments"

    shipment_id = Column(Integer, primary_key=True, autoincrement=False)
    product_id = Column(Integer, ForeignKey("products.product_id"), nullable=False)
    supplier_id = Column(Integer, ForeignKey("suppliers.supplier_id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    expected_delivery = Column(BigInteger, nullable=False)
    actual_delivery = Column(BigInteger, nullable=False, default=0)  # 0 = not yet delivered
    quality_check = Column(Integer, nullable=False, default=0)  # 0 = not yet inspected
    cost = Column(BigInteger, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=ShipmentStatus.IN_TRANSIT.value)
    tracking_hash = Column(String(64), nullable=False, unique=True)

    __table_args__ = (
        Index("ix_shipments_product", "product_id"),
        Index("ix_shipments_supplier", "supplier_id"),
        CheckConstraint("quantity >= 0", name="ck_shipment_quantity_positive"),
        CheckConstraint("cost >= 0", name="ck_shipment_cost_positive"),
        CheckConstraint(
            "status IN ('IN_TRANSIT', 'DELIVERED', 'DELAYED', 'CANCELLED')",
            name="ck_shipment_status",
        ),
    )


# ─── 4. Demand Predictions ─────────────────────────────────────────────────


class DemandPrediction(Base):
    __tablename__ = "demand_predictions"

    product_id = Column(Integer, ForeignKey("products.product_id"), primary_key=True)
    forecast_period = Column(Integer, primary_key=True)
    predicted_demand = Column(Integer, nullable=False)
    confidence_level = Column(Integer, nullable=False)
    seasonal_factor = Column(Integer, nullable=False)
    market_trends = Column(Integer, nullable=False)
    historical_accuracy = Column(Integer, nullable=False)
    model_version = Column(String(20), nullable=False)
    recorded_at = Column(BigInteger, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("predicted_demand >= 0", name="ck_prediction_demand_positive"),
        CheckConstraint("confidence_level >= 0 AND confidence_level <= 100", name="ck_prediction_confidence_range"),
    )


# ─── 5. Registry Counters ──────────────────────────────────────────────────


class Counter(Base):
    __tablename__ = "registry_counters"

    name = Column(String(50), primary_key=True)
    value = Column(BigInteger, nullable=False, default=0)


def create_registry_schema(sync_conn) -> None:
    """
    Create all tables and seed every registry counter at its default.

    Run through ``AsyncConnection.run_sync``. Existing counter rows are
    left untouched, so it is safe on every startup.
    """
    Base.metadata.create_all(sync_conn)

    rows = [{"name": counter.value, "value": default} for counter, default in COUNTER_DEFAULTS.items()]
    dialect = sync_conn.dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as dialect_insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as dialect_insert
    else:
        existing = set(sync_conn.execute(select(Counter.name)).scalars())
        missing = [row for row in rows if row["name"] not in existing]
        if missing:
            sync_conn.execute(insert(Counter), missing)
        return

    sync_conn.execute(dialect_insert(Counter).on_conflict_do_nothing(index_elements=["name"]), rows)
