"""
Shared enumerations for maintenance analytics.
"""

from enum import Enum

__all__ = [
    "Priority",
    "AssetStatus",
    "RiskLevel",
    "TrendDirection",
    "MaintenanceType",
    "RecommendationType",
    "AnomalyType",
]


class Priority(str, Enum):
    """Priority level enumeration."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"
    CRITICAL = "critical"


class AssetStatus(str, Enum):
    """Asset lifecycle status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"
    DISPOSED = "disposed"


class RiskLevel(str, Enum):
    """Failure risk tier derived from failure probability."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"
    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"


class TrendDirection(str, Enum):
    """Direction of the monthly cost trend."""

    INCREASING = "INCREASING"
    DECREASING = "DECREASING"
    STABLE = "STABLE"


class MaintenanceType(str, Enum):
    """Kind of maintenance scheduled for an asset."""

    EMERGENCY = "EMERGENCY"
    URGENT_PREVENTIVE = "URGENT_PREVENTIVE"
    SCHEDULED_PREVENTIVE = "SCHEDULED_PREVENTIVE"
    ROUTINE = "ROUTINE"


class RecommendationType(str, Enum):
    """Maintenance recommendation kinds."""

    IMMEDIATE_INSPECTION = "IMMEDIATE_INSPECTION"
    PREVENTIVE_MAINTENANCE = "PREVENTIVE_MAINTENANCE"
    ROUTINE_CHECKUP = "ROUTINE_CHECKUP"


class AnomalyType(str, Enum):
    """Maintenance anomaly kinds."""

    COST_ANOMALY = "COST_ANOMALY"
    FREQUENCY_ANOMALY = "FREQUENCY_ANOMALY"
    DURATION_ANOMALY = "DURATION_ANOMALY"
