"""
Inventory Optimizer — Safety-stock inventory targets.

Turns a product's latest accepted demand forecast into its optimal
inventory target. Called synchronously after every forecast update.

Algorithm:
  Safety Stock      = ⌊Demand Forecast × 20 / 100⌋
  Optimal Inventory = Demand Forecast + Safety Stock

Optimal inventory is a target, not a constraint: it may sit above or
below the physical current_inventory. All arithmetic is integer floor
division; forecasts are non-negative so targets are too.
"""

import structlog

from registry.store import RecordKind, RegistryStore

logger = structlog.get_logger()

DEFAULT_SAFETY_STOCK_PCT = 20


def safety_stock(demand_forecast: int, safety_stock_pct: int = DEFAULT_SAFETY_STOCK_PCT) -> int:
    """Safety buffer on top of the forecast."""
    return demand_forecast * safety_stock_pct // 100


def optimal_inventory_for(demand_forecast: int, safety_stock_pct: int = DEFAULT_SAFETY_STOCK_PCT) -> int:
    return demand_forecast + safety_stock(demand_forecast, safety_stock_pct)


async def recompute_optimal_inventory(
    store: RegistryStore,
    product_id: int,
    tick: int,
    safety_stock_pct: int = DEFAULT_SAFETY_STOCK_PCT,
) -> int:
    """
    Recalculate and persist a product's optimal inventory.

    Returns the new target, or 0 without writing anything when the
    product does not exist. Callers that require the product must check
    existence themselves.
    """
    product = await store.get(RecordKind.PRODUCT, product_id)
    if product is None:
        return 0

    buffer = safety_stock(product.demand_forecast, safety_stock_pct)
    target = product.demand_forecast + buffer
    old_target = product.optimal_inventory

    product.optimal_inventory = target
    product.last_updated = tick
    await store.put(RecordKind.PRODUCT, product_id, product)

    logger.info(
        "optimizer.target_updated",
        product_id=product_id,
        demand_forecast=product.demand_forecast,
        safety_stock=buffer,
        old_optimal_inventory=old_target,
        new_optimal_inventory=target,
    )
    return target
