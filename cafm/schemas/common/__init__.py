from cafm.schemas.common.base import BaseSchema
from cafm.schemas.common.enums import (
    AnomalyType,
    AssetStatus,
    MaintenanceType,
    Priority,
    RecommendationType,
    RiskLevel,
    TrendDirection,
)

__all__ = [
    "BaseSchema",
    "AnomalyType",
    "AssetStatus",
    "MaintenanceType",
    "Priority",
    "RecommendationType",
    "RiskLevel",
    "TrendDirection",
]
