"""
Risk-ranked maintenance scheduling.
"""

import statistics
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from cafm.core.config import AnalyticsSettings, settings
from cafm.core.logging import log_execution_time
from cafm.schemas.common.enums import MaintenanceType, RiskLevel
from cafm.schemas.maintenance.prediction import FailurePrediction
from cafm.schemas.maintenance.schedule import (
    MaintenanceSchedule,
    ScheduledMaintenanceItem,
    ScheduleMetrics,
)

MAINTENANCE_TYPES = {
    RiskLevel.CRITICAL: MaintenanceType.EMERGENCY,
    RiskLevel.HIGH: MaintenanceType.URGENT_PREVENTIVE,
    RiskLevel.MEDIUM: MaintenanceType.SCHEDULED_PREVENTIVE,
}


def maintenance_type_for(risk_level: RiskLevel) -> MaintenanceType:
    return MAINTENANCE_TYPES.get(risk_level, MaintenanceType.ROUTINE)


def _priority_key(item: ScheduledMaintenanceItem):
    probability = item.failure_probability
    cost_per_risk = (
        float(item.estimated_cost) / probability if probability > 0 else float("inf")
    )
    return (-probability, cost_per_risk)


class ScheduleOptimizer:
    """Builds a schedule from per-asset failure predictions."""

    def __init__(self, config: Optional[AnalyticsSettings] = None):
        self.config = config or settings.analytics

    @log_execution_time("schedule_build")
    def build_schedule(
        self,
        company_id: UUID,
        predictions: Iterable[FailurePrediction],
        horizon_days: int,
        as_of: datetime,
    ) -> MaintenanceSchedule:
        """
        Rank assets above the inclusion threshold.

        Highest probability first; ties go to the lower cost per unit of
        probability.
        """
        threshold = self.config.FAILURE_PREDICTION_THRESHOLD

        items = [
            ScheduledMaintenanceItem(
                asset_id=p.asset_id,
                asset_name=p.asset_name,
                scheduled_date=p.predicted_maintenance_date or as_of.date(),
                failure_probability=p.failure_probability,
                estimated_cost=p.estimated_cost,
                maintenance_type=maintenance_type_for(p.risk_level),
                recommendations=p.recommendations,
            )
            for p in predictions
            if p.failure_probability > threshold
        ]
        items.sort(key=_priority_key)

        return MaintenanceSchedule(
            company_id=company_id,
            items=items,
            metrics=self._metrics(items, threshold),
            window_start=as_of,
            window_end=as_of + timedelta(days=horizon_days),
        )

    @staticmethod
    def _metrics(items, threshold: float) -> ScheduleMetrics:
        if not items:
            return ScheduleMetrics()

        return ScheduleMetrics(
            total_items=len(items),
            total_estimated_cost=sum((i.estimated_cost for i in items), Decimal("0.00")),
            average_failure_probability=min(
                statistics.mean(i.failure_probability for i in items),
                max(i.failure_probability for i in items),
            ),
            critical_item_count=sum(1 for i in items if i.failure_probability > threshold),
        )
