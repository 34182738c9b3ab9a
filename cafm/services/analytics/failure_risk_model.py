"""
Failure risk model.

Scores an asset's likelihood of failure within a horizon as a weighted sum
of four explainable factors, each capped individually:

- age: asset age over a ten year lifecycle
- frequency: maintenance reports in the trailing year, per month
- cost trend: relative rise from the oldest to the newest work order costs
- severity: high and critical reports in the trailing year, per quarter

The weights come from ``AnalyticsSettings`` and are constants, not fitted.
"""

import math
import statistics
from datetime import date as Date, datetime, timedelta
from decimal import Decimal
from typing import List, Optional, Sequence

from dateutil.relativedelta import relativedelta

from cafm.core.config import AnalyticsSettings, settings
from cafm.core.logging import get_logger, log_execution_time
from cafm.schemas.common.enums import Priority, RiskLevel
from cafm.schemas.maintenance.history import (
    Asset,
    MaintenanceRecord,
    WorkOrderRecord,
)
from cafm.schemas.maintenance.prediction import FailurePrediction
from cafm.services.analytics.maintenance_recommender import MaintenanceRecommender

logger = get_logger(__name__)

LIFECYCLE_DAYS = 3650
MAX_PROBABILITY = 0.95
HORIZON_ADJUSTMENT_PER_YEAR = 0.1
MAINTENANCE_SAFETY_MARGIN = 0.8
DEFAULT_MAINTENANCE_INTERVAL_DAYS = 90

AGE_CAP = 0.8
FREQUENCY_CAP = 0.7
COST_TREND_CAP = 0.6
SEVERITY_CAP = 0.8

UNKNOWN_AGE_FACTOR = 0.3
SPARSE_FREQUENCY_FACTOR = 0.2
SPARSE_COST_TREND_FACTOR = 0.2
EMPTY_SEVERITY_FACTOR = 0.1

SEVERE_PRIORITIES = frozenset({Priority.HIGH, Priority.CRITICAL})

MEDIUM_PROBABILITY = 0.25
HIGH_PROBABILITY = 0.50
CRITICAL_PROBABILITY = 0.75


def risk_level_for(probability: float) -> RiskLevel:
    """
    Map a probability onto its risk tier.

    Tiers start at whole percentages, so comparing the probability itself
    gives the same tier as the truncated percentage without float noise.
    """
    if probability >= CRITICAL_PROBABILITY:
        return RiskLevel.CRITICAL
    if probability >= HIGH_PROBABILITY:
        return RiskLevel.HIGH
    if probability >= MEDIUM_PROBABILITY:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def _most_recent_first(records):
    return sorted(records, key=lambda r: r.created_at, reverse=True)


class FailureRiskModel:
    """Pure failure-probability model over one asset's history."""

    def __init__(
        self,
        config: Optional[AnalyticsSettings] = None,
        recommender: Optional[MaintenanceRecommender] = None,
    ):
        self.config = config or settings.analytics
        self.recommender = recommender or MaintenanceRecommender(self.config)

    @log_execution_time("failure_prediction")
    def predict(
        self,
        asset: Asset,
        maintenance_history: Sequence[MaintenanceRecord],
        work_order_history: Sequence[WorkOrderRecord],
        horizon_days: int,
        as_of: datetime,
    ) -> FailurePrediction:
        history = _most_recent_first(maintenance_history)

        if len(history) < self.config.MIN_HISTORICAL_DATA_POINTS:
            logger.debug(
                "Insufficient maintenance history for prediction",
                extra={"asset_id": str(asset.id), "records": len(history)},
            )
            return FailurePrediction(
                asset_id=asset.id,
                asset_name=asset.name,
                failure_probability=0.0,
                risk_level=RiskLevel.INSUFFICIENT_DATA,
                predicted_maintenance_date=as_of.date() + timedelta(days=horizon_days),
                horizon_days=horizon_days,
                recommendations=[],
                estimated_cost=Decimal("0.00"),
            )

        probability = self.failure_probability(
            asset, history, work_order_history, horizon_days, as_of
        )
        risk_level = risk_level_for(probability)

        return FailurePrediction(
            asset_id=asset.id,
            asset_name=asset.name,
            failure_probability=probability,
            risk_level=risk_level,
            predicted_maintenance_date=self.next_maintenance_date(history, as_of),
            horizon_days=horizon_days,
            recommendations=self.recommender.recommend(
                asset, probability, risk_level, history, as_of
            ),
            estimated_cost=self.recommender.estimate_cost(history, probability),
        )

    def failure_probability(
        self,
        asset: Asset,
        history: Sequence[MaintenanceRecord],
        work_orders: Sequence[WorkOrderRecord],
        horizon_days: int,
        as_of: datetime,
    ) -> float:
        weighted = (
            self.age_factor(asset, as_of) * self.config.AGE_WEIGHT
            + self.frequency_factor(history, as_of) * self.config.FREQUENCY_WEIGHT
            + self.cost_trend_factor(work_orders) * self.config.COST_TREND_WEIGHT
            + self.severity_factor(history, as_of) * self.config.SEVERITY_WEIGHT
        )
        adjusted = weighted * (1 + (horizon_days / 365.0) * HORIZON_ADJUSTMENT_PER_YEAR)
        return max(0.0, min(adjusted, MAX_PROBABILITY))

    # ==================== Factors ====================

    def age_factor(self, asset: Asset, as_of: datetime) -> float:
        if asset.acquisition_date is None:
            return UNKNOWN_AGE_FACTOR
        age_days = max((as_of.date() - asset.acquisition_date).days, 0)
        return min(age_days / LIFECYCLE_DAYS * AGE_CAP, AGE_CAP)

    def frequency_factor(self, history: Sequence[MaintenanceRecord], as_of: datetime) -> float:
        if len(history) < 2:
            return SPARSE_FREQUENCY_FACTOR
        one_year_ago = as_of - relativedelta(years=1)
        recent = sum(1 for r in history if r.created_at > one_year_ago)
        return min(recent / 12.0, FREQUENCY_CAP)

    def cost_trend_factor(self, work_orders: Sequence[WorkOrderRecord]) -> float:
        sample = self.config.COST_TREND_SAMPLE_SIZE
        if len(work_orders) < sample:
            return SPARSE_COST_TREND_FACTOR

        costs = [
            float(wo.total_cost)
            for wo in _most_recent_first(work_orders)
            if wo.total_cost is not None and wo.total_cost > 0
        ]
        if len(costs) < sample:
            return SPARSE_COST_TREND_FACTOR

        recent_average = statistics.mean(costs[:sample])
        early_average = statistics.mean(costs[-sample:])
        if early_average == 0:
            return SPARSE_COST_TREND_FACTOR

        trend = (recent_average - early_average) / early_average
        return max(0.0, min(trend, COST_TREND_CAP))

    def severity_factor(self, history: Sequence[MaintenanceRecord], as_of: datetime) -> float:
        if not history:
            return EMPTY_SEVERITY_FACTOR
        one_year_ago = as_of - relativedelta(years=1)
        severe = sum(
            1
            for r in history
            if r.created_at > one_year_ago and r.priority in SEVERE_PRIORITIES
        )
        return min(severe / 4.0, SEVERITY_CAP)

    # ==================== Dates ====================

    def next_maintenance_date(
        self,
        history: List[MaintenanceRecord],
        as_of: datetime,
    ) -> Date:
        """Project the latest interval, shortened by a safety margin, from the last report."""
        if len(history) < 2:
            return as_of.date() + timedelta(days=DEFAULT_MAINTENANCE_INTERVAL_DAYS)

        last = history[0].created_at.date()
        previous = history[1].created_at.date()
        interval = (last - previous).days
        return last + timedelta(days=math.floor(interval * MAINTENANCE_SAFETY_MARGIN + 0.5))
