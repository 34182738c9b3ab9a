"""
Maintenance recommendations and cost estimates.
"""

import statistics
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence

from cafm.core.config import AnalyticsSettings, settings
from cafm.schemas.common.enums import RecommendationType, RiskLevel
from cafm.schemas.maintenance.history import Asset, MaintenanceRecord
from cafm.schemas.maintenance.prediction import MaintenanceRecommendation

CENTS = Decimal("0.01")

DEFAULT_AVERAGE_COST = Decimal("1000")
IMMEDIATE_INSPECTION_COST = Decimal("500.00")
ROUTINE_CHECKUP_COST = Decimal("200.00")

ELEVATED_PROBABILITY = 0.5
ROUTINE_CHECKUP_AFTER_DAYS = 180


class MaintenanceRecommender:
    """
    Rule table turning a failure probability into recommended actions.

    Rules are evaluated independently; each one that holds contributes a
    recommendation, in the order listed in ``recommend``.
    """

    def __init__(self, config: Optional[AnalyticsSettings] = None):
        self.config = config or settings.analytics

    def estimate_cost(
        self,
        history: Sequence[MaintenanceRecord],
        probability: float,
    ) -> Decimal:
        """
        Expected cost of the next maintenance at the given failure probability.

        Average actual cost, inflated by one year and scaled up by
        ``1 + 1.5 * probability`` for the premium of reactive repair.
        """
        if not history:
            return DEFAULT_AVERAGE_COST.quantize(CENTS, rounding=ROUND_HALF_UP)

        costs = [r.actual_cost for r in history if r.actual_cost is not None]
        if costs:
            average = statistics.mean(costs)
        else:
            average = DEFAULT_AVERAGE_COST

        inflation = Decimal("1") + Decimal(str(self.config.COST_INFLATION_FACTOR))
        reactive_premium = Decimal("1") + Decimal("1.5") * Decimal(str(probability))
        return (average * inflation * reactive_premium).quantize(
            CENTS, rounding=ROUND_HALF_UP
        )

    def preventive_cost(self, history: Sequence[MaintenanceRecord]) -> Decimal:
        """Cost of planned maintenance, a fixed share of the reactive estimate."""
        reactive = self.estimate_cost(history, ELEVATED_PROBABILITY)
        multiplier = Decimal(str(self.config.PREVENTIVE_COST_MULTIPLIER))
        return (reactive * multiplier).quantize(CENTS, rounding=ROUND_HALF_UP)

    def recommend(
        self,
        asset: Asset,
        probability: float,
        risk_level: RiskLevel,
        history: Sequence[MaintenanceRecord],
        as_of: datetime,
    ) -> List[MaintenanceRecommendation]:
        if risk_level == RiskLevel.INSUFFICIENT_DATA:
            return []

        recommendations = []

        if probability > self.config.FAILURE_PREDICTION_THRESHOLD:
            recommendations.append(
                MaintenanceRecommendation(
                    type=RecommendationType.IMMEDIATE_INSPECTION,
                    description="Schedule immediate inspection due to high failure probability",
                    urgency_days=1,
                    estimated_cost=IMMEDIATE_INSPECTION_COST,
                )
            )

        if probability > ELEVATED_PROBABILITY:
            recommendations.append(
                MaintenanceRecommendation(
                    type=RecommendationType.PREVENTIVE_MAINTENANCE,
                    description="Schedule preventive maintenance to avoid costly failures",
                    urgency_days=7,
                    estimated_cost=self.preventive_cost(history),
                )
            )

        cutoff = as_of.date() - timedelta(days=ROUTINE_CHECKUP_AFTER_DAYS)
        if asset.last_maintenance_date is not None and asset.last_maintenance_date < cutoff:
            recommendations.append(
                MaintenanceRecommendation(
                    type=RecommendationType.ROUTINE_CHECKUP,
                    description="Asset hasn't been maintained in over 6 months",
                    urgency_days=14,
                    estimated_cost=ROUTINE_CHECKUP_COST,
                )
            )

        return recommendations
