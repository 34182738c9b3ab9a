"""
Maintenance analytics schemas: history inputs and analytics results.
"""

from cafm.schemas.maintenance.anomaly import MaintenanceAnomaly
from cafm.schemas.maintenance.forecast import (
    BudgetRecommendation,
    CostForecast,
    MonthlyCost,
    TrendAnalysis,
)
from cafm.schemas.maintenance.history import (
    Asset,
    MaintenanceRecord,
    WorkOrderRecord,
)
from cafm.schemas.maintenance.prediction import (
    FailurePrediction,
    MaintenanceRecommendation,
)
from cafm.schemas.maintenance.schedule import (
    MaintenanceSchedule,
    ScheduledMaintenanceItem,
    ScheduleMetrics,
)

__all__ = [
    # History
    "Asset",
    "MaintenanceRecord",
    "WorkOrderRecord",
    # Prediction
    "FailurePrediction",
    "MaintenanceRecommendation",
    # Forecast
    "MonthlyCost",
    "TrendAnalysis",
    "BudgetRecommendation",
    "CostForecast",
    # Anomaly
    "MaintenanceAnomaly",
    # Schedule
    "ScheduledMaintenanceItem",
    "ScheduleMetrics",
    "MaintenanceSchedule",
]
