"""
Optimization Cycle Orchestrator.

Runs the four registry-wide analyses and assembles one report:

  1. Demand analytics         (toggle: demand_analytics)
  2. Supplier optimization    (toggle: supplier_optimization)
  3. Inventory auto-reorder   (toggle: auto_reorder)
  4. Risk mitigation          (toggle: risk_mitigation)

A disabled section is still present, zeroed. Impact projections are
always computed from total_supply_chain_value. The only durable write is
the optimization_cycles counter, incremented exactly once per completed
run; the report itself is returned to the caller and logged.

State machine: IDLE → RUNNING → IDLE. The orchestrator instance is shared
process-wide, so a second run while one is in flight is refused.
Authorization is checked by the registry service before run() is called.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

import structlog

from core.config import Settings
from core.errors import CycleInProgressError
from db.models import RegistryCounter
from optimization import reports
from registry.store import RecordKind, RegistryStore
from scoring.suppliers import DEFAULT_THRESHOLDS, DEFAULT_WEIGHTS, RiskThresholds, ScoringWeights

logger = structlog.get_logger()


class CycleState(str, Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"


class AnalyticsMode(str, Enum):
    LIVE = "live"
    STATIC = "static"


@dataclass(frozen=True)
class CycleToggles:
    demand_analytics: bool = True
    auto_reorder: bool = True
    supplier_optimization: bool = True
    risk_mitigation: bool = True


@dataclass(frozen=True)
class CyclePolicy:
    """Fixed policy for a cycle: weights, targets and report constants."""

    weights: ScoringWeights = DEFAULT_WEIGHTS
    thresholds: RiskThresholds = DEFAULT_THRESHOLDS
    analytics_mode: AnalyticsMode = AnalyticsMode.LIVE
    cost_savings_pct: int = 15
    quality_improvement_pct: int = 10
    delivery_gain_pct: int = 20
    cycle_interval_ticks: int = 1008
    confidence_score: int = 92
    top_supplier_count: int = 5

    @classmethod
    def from_settings(cls, settings: Settings) -> "CyclePolicy":
        return cls(
            weights=ScoringWeights.from_settings(settings),
            thresholds=RiskThresholds.from_settings(settings),
            analytics_mode=AnalyticsMode(settings.analytics_mode),
            cost_savings_pct=settings.cost_savings_target_pct,
            quality_improvement_pct=settings.quality_improvement_target_pct,
            delivery_gain_pct=settings.delivery_gain_target_pct,
            cycle_interval_ticks=settings.cycle_interval_ticks,
            confidence_score=settings.cycle_confidence_score,
            top_supplier_count=settings.top_supplier_count,
        )


class OptimizationCycleOrchestrator:
    """Registry-wide optimization cycle runner."""

    def __init__(self, policy: CyclePolicy | None = None):
        self.policy = policy or CyclePolicy()
        self.state = CycleState.IDLE

    async def run(
        self,
        store: RegistryStore,
        scope: str,
        toggles: CycleToggles,
        tick: int,
    ) -> dict[str, Any]:
        if self.state == CycleState.RUNNING:
            raise CycleInProgressError("An optimization cycle is already running")

        self.state = CycleState.RUNNING
        log = logger.bind(cycle_id=tick, scope=scope)
        log.info("optimization.cycle_started", toggles=asdict(toggles), mode=self.policy.analytics_mode.value)
        try:
            report = await self._build_report(store, scope, toggles, tick)
            report["cycle_number"] = await store.add_to_count(RegistryCounter.OPTIMIZATION_CYCLES, 1)
        except Exception as exc:
            log.error("optimization.cycle_failed", error=str(exc))
            raise
        finally:
            self.state = CycleState.IDLE

        log.info(
            "optimization.cycle_completed",
            cycle_number=report["cycle_number"],
            reorder_recommendations=len(report["inventory_reorder"]["recommendations"]),
            suppliers_evaluated=report["supplier_optimization"]["suppliers_evaluated"],
            impact=report["impact_projections"],
        )
        return report

    async def _build_report(
        self,
        store: RegistryStore,
        scope: str,
        toggles: CycleToggles,
        tick: int,
    ) -> dict[str, Any]:
        policy = self.policy
        static = policy.analytics_mode == AnalyticsMode.STATIC

        suppliers = None
        if not static and (toggles.supplier_optimization or toggles.risk_mitigation):
            suppliers = await store.scan(RecordKind.SUPPLIER)

        if not toggles.demand_analytics:
            demand = reports.zero_demand_analytics()
        elif static:
            demand = reports.static_demand_analytics()
        else:
            demand = reports.live_demand_analytics(await store.scan(RecordKind.DEMAND_PREDICTION))

        if not toggles.supplier_optimization:
            supplier_report = reports.zero_supplier_optimization()
        elif static:
            supplier_report = reports.static_supplier_optimization()
        else:
            supplier_report = reports.live_supplier_optimization(
                suppliers, policy.weights, policy.thresholds, policy.top_supplier_count
            )

        if toggles.auto_reorder:
            reorder = reports.build_inventory_reorder(await store.scan(RecordKind.PRODUCT))
        else:
            reorder = reports.zero_inventory_reorder()

        if not toggles.risk_mitigation:
            risk = reports.zero_risk_mitigation()
        elif static:
            risk = reports.static_risk_mitigation()
        else:
            risk = reports.live_risk_mitigation(suppliers, policy.thresholds)

        current_value = await store.count(RegistryCounter.TOTAL_SUPPLY_CHAIN_VALUE)

        return {
            "cycle_id": tick,
            "scope": scope,
            "analytics_mode": policy.analytics_mode.value,
            "demand_analytics": demand,
            "supplier_optimization": supplier_report,
            "inventory_reorder": reorder,
            "risk_mitigation": risk,
            "impact_projections": reports.impact_projections(
                current_value,
                policy.cost_savings_pct,
                policy.quality_improvement_pct,
                policy.delivery_gain_pct,
            ),
            "next_cycle": tick + policy.cycle_interval_ticks,
            "confidence_score": policy.confidence_score,
        }
