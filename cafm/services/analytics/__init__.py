"""
Predictive maintenance analytics services.
"""

from cafm.services.analytics.anomaly_detector import AnomalyDetector
from cafm.services.analytics.cost_forecaster import CostForecaster
from cafm.services.analytics.cost_trend_analyzer import CostTrendAnalyzer
from cafm.services.analytics.failure_risk_model import FailureRiskModel, risk_level_for
from cafm.services.analytics.maintenance_recommender import MaintenanceRecommender
from cafm.services.analytics.predictive_maintenance_service import (
    PredictiveMaintenanceService,
    create_predictive_maintenance_service,
)
from cafm.services.analytics.schedule_optimizer import (
    ScheduleOptimizer,
    maintenance_type_for,
)

__all__ = [
    "AnomalyDetector",
    "CostForecaster",
    "CostTrendAnalyzer",
    "FailureRiskModel",
    "MaintenanceRecommender",
    "PredictiveMaintenanceService",
    "ScheduleOptimizer",
    "create_predictive_maintenance_service",
    "maintenance_type_for",
    "risk_level_for",
]
