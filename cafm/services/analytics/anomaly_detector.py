"""
Maintenance anomaly detection.
"""

import statistics
from decimal import Decimal
from typing import List, Optional, Sequence

from cafm.core.config import AnalyticsSettings, settings
from cafm.core.logging import get_logger, log_execution_time
from cafm.schemas.common.enums import AnomalyType
from cafm.schemas.maintenance.anomaly import MaintenanceAnomaly
from cafm.schemas.maintenance.history import WorkOrderRecord

logger = get_logger(__name__)


class AnomalyDetector:
    """
    Flags work orders that deviate from the company's recent baseline.

    Only cost anomalies are detected. The frequency and duration detectors
    keep the same contract and currently report nothing, so callers must not
    expect every anomaly type to be present.
    """

    def __init__(self, config: Optional[AnalyticsSettings] = None):
        self.config = config or settings.analytics

    @log_execution_time("anomaly_detection")
    def detect(self, work_orders: Sequence[WorkOrderRecord]) -> List[MaintenanceAnomaly]:
        anomalies = (
            self.detect_cost_anomalies(work_orders)
            + self.detect_frequency_anomalies(work_orders)
            + self.detect_duration_anomalies(work_orders)
        )
        anomalies.sort(key=lambda a: a.severity_score, reverse=True)
        return anomalies

    def detect_cost_anomalies(
        self,
        work_orders: Sequence[WorkOrderRecord],
    ) -> List[MaintenanceAnomaly]:
        costed = [wo for wo in work_orders if wo.total_cost is not None]
        if len(costed) < self.config.ANOMALY_MIN_SAMPLE_SIZE:
            return []

        mean = statistics.mean(wo.total_cost for wo in costed)
        if mean <= 0:
            return []

        threshold = mean * Decimal(str(self.config.ANOMALY_COST_MULTIPLIER))
        anomalies = [
            MaintenanceAnomaly(
                work_order_id=wo.id,
                anomaly_type=AnomalyType.COST_ANOMALY,
                description="Work order cost significantly higher than average",
                severity_score=float(wo.total_cost / mean),
                detected_at=wo.created_at,
            )
            for wo in costed
            if wo.total_cost > threshold
        ]

        if anomalies:
            logger.debug(
                "Cost anomalies detected",
                extra={"count": len(anomalies), "mean_cost": str(mean)},
            )
        return anomalies

    def detect_frequency_anomalies(
        self,
        work_orders: Sequence[WorkOrderRecord],
    ) -> List[MaintenanceAnomaly]:
        return []

    def detect_duration_anomalies(
        self,
        work_orders: Sequence[WorkOrderRecord],
    ) -> List[MaintenanceAnomaly]:
        return []
