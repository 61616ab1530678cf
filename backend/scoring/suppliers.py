"""
Supplier Scoring — Composite score and risk tier.

Pure functions of a supplier's current performance attributes plus fixed
policy (weights and thresholds from Settings). Nothing here writes; callers
persist the returned risk tier on the supplier record.

Algorithm:
  score = ⌊cost_efficiency × w_cost / 100⌋
        + ⌊quality_rating × w_quality / 100⌋
        + ⌊delivery_performance × w_delivery / 100⌋        (w = 40/35/25)

  risk  = LOW_RISK       if reliability ≥ 80 and quality ≥ 85
          MODERATE_RISK  elif reliability ≥ 60
          HIGH_RISK      otherwise
          UNKNOWN_RISK   when the supplier does not exist
"""

from dataclasses import dataclass

from core.config import Settings
from db.models import RiskTier, Supplier
from registry.store import RecordKind, RegistryStore


@dataclass(frozen=True)
class ScoringWeights:
    """Composite score weights, in percent. Must sum to 100."""

    cost: int = 40
    quality: int = 35
    delivery: int = 25

    def __post_init__(self):
        if min(self.cost, self.quality, self.delivery) < 0 or self.cost + self.quality + self.delivery != 100:
            raise ValueError(f"Score weights must be non-negative and sum to 100: {self}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScoringWeights":
        return cls(
            cost=settings.score_weight_cost,
            quality=settings.score_weight_quality,
            delivery=settings.score_weight_delivery,
        )


@dataclass(frozen=True)
class RiskThresholds:
    low_risk_min_reliability: int = 80
    low_risk_min_quality: int = 85
    moderate_risk_min_reliability: int = 60

    @classmethod
    def from_settings(cls, settings: Settings) -> "RiskThresholds":
        return cls(
            low_risk_min_reliability=settings.low_risk_min_reliability,
            low_risk_min_quality=settings.low_risk_min_quality,
            moderate_risk_min_reliability=settings.moderate_risk_min_reliability,
        )


DEFAULT_WEIGHTS = ScoringWeights()
DEFAULT_THRESHOLDS = RiskThresholds()


def score(supplier: Supplier | None, weights: ScoringWeights = DEFAULT_WEIGHTS) -> int:
    """Weighted composite score in [0, 100]. A missing supplier scores 0."""
    if supplier is None:
        return 0
    return (
        supplier.cost_efficiency * weights.cost // 100
        + supplier.quality_rating * weights.quality // 100
        + supplier.delivery_performance * weights.delivery // 100
    )


def classify_risk(supplier: Supplier | None, thresholds: RiskThresholds = DEFAULT_THRESHOLDS) -> RiskTier:
    """Risk tier from reliability and quality. Reliability gates first."""
    if supplier is None:
        return RiskTier.UNKNOWN_RISK
    return classify_risk_values(supplier.reliability, supplier.quality_rating, thresholds)


def classify_risk_values(
    reliability: int,
    quality_rating: int,
    thresholds: RiskThresholds = DEFAULT_THRESHOLDS,
) -> RiskTier:
    if reliability >= thresholds.low_risk_min_reliability and quality_rating >= thresholds.low_risk_min_quality:
        return RiskTier.LOW_RISK
    if reliability >= thresholds.moderate_risk_min_reliability:
        return RiskTier.MODERATE_RISK
    return RiskTier.HIGH_RISK


async def supplier_score(
    store: RegistryStore,
    supplier_id: int,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> int:
    supplier = await store.get(RecordKind.SUPPLIER, supplier_id)
    return score(supplier, weights)


async def supplier_risk(
    store: RegistryStore,
    supplier_id: int,
    thresholds: RiskThresholds = DEFAULT_THRESHOLDS,
) -> RiskTier:
    supplier = await store.get(RecordKind.SUPPLIER, supplier_id)
    return classify_risk(supplier, thresholds)
