"""
Optimization Worker — Scheduled registry optimization cycle.

Runs one full optimization cycle as the first configured owner principal
and returns a compact summary; the full report is logged by the
orchestrator.

Schedule: crontab(hour=2, minute=0, day_of_week="sunday") — weekly
Queue: optimization
"""

import asyncio
from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from workers.celery_app import celery_app

logger = structlog.get_logger()


@celery_app.task(
    name="workers.optimization.run_scheduled_cycle",
    bind=True,
    max_retries=2,
    default_retry_delay=300,
    acks_late=True,
)
def run_scheduled_cycle(
    self,
    scope: str = "scheduled",
    enable_demand_analytics: bool = True,
    enable_auto_reorder: bool = True,
    enable_supplier_optimization: bool = True,
    enable_risk_mitigation: bool = True,
):
    """Weekly job: run the optimization cycle over the whole registry."""
    run_id = self.request.id or "manual"
    logger.info("optimization_worker.started", scope=scope, run_id=run_id)

    async def _run():
        from core.config import get_settings
        from db.models import create_registry_schema
        from db.session import make_engine
        from optimization.cycle import CycleToggles
        from registry.service import SupplyChainRegistry
        from registry.store import SqlRegistryStore

        settings = get_settings()
        engine = make_engine(settings.database_url)
        try:
            async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
            if settings.auto_create_schema:
                async with engine.begin() as conn:
                    await conn.run_sync(create_registry_schema)

            async with async_session() as db:
                registry = SupplyChainRegistry(SqlRegistryStore(db), settings=settings)
                report = await registry.run_optimization_cycle(
                    settings.owner_principals[0],
                    scope,
                    CycleToggles(
                        demand_analytics=enable_demand_analytics,
                        auto_reorder=enable_auto_reorder,
                        supplier_optimization=enable_supplier_optimization,
                        risk_mitigation=enable_risk_mitigation,
                    ),
                )
        finally:
            await engine.dispose()

        summary = {
            "status": "success",
            "run_id": run_id,
            "cycle_id": report["cycle_id"],
            "cycle_number": report["cycle_number"],
            "next_cycle": report["next_cycle"],
            "reorder_recommendations": len(report["inventory_reorder"]["recommendations"]),
            "completed_at": datetime.now(timezone.utc).isoformat(),
        }
        logger.info("optimization_worker.completed", **summary)
        return summary

    try:
        return asyncio.run(_run())
    except Exception as exc:
        logger.error("optimization_worker.failed", error=str(exc), exc_info=True)
        raise self.retry(exc=exc)
