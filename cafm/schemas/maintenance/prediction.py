"""
Failure prediction schemas.
"""

from __future__ import annotations

from datetime import date as Date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import ConfigDict, Field, computed_field

from cafm.schemas.common.base import BaseSchema
from cafm.schemas.common.enums import RecommendationType, RiskLevel

__all__ = [
    "MaintenanceRecommendation",
    "FailurePrediction",
]


class MaintenanceRecommendation(BaseSchema):
    """Single recommended maintenance action."""

    type: RecommendationType = Field(..., description="Recommendation kind")
    description: str = Field(..., description="Human readable action")
    urgency_days: int = Field(
        ...,
        ge=0,
        description="Days within which the action should happen",
    )
    estimated_cost: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Estimated cost of the action",
    )


class FailurePrediction(BaseSchema):
    """
    Failure risk prediction for one asset over a horizon.

    The probability never exceeds 0.95. Predictions for assets with too
    little history carry ``RiskLevel.INSUFFICIENT_DATA``, a probability of
    0.0 and no recommendations.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "asset_id": "123e4567-e89b-12d3-a456-426614174000",
                "asset_name": "Boiler B-2",
                "failure_probability": 0.81,
                "risk_level": "CRITICAL",
                "predicted_maintenance_date": "2024-03-14",
                "horizon_days": 90,
                "recommendations": [
                    {
                        "type": "IMMEDIATE_INSPECTION",
                        "description": "Schedule immediate inspection due to high failure probability",
                        "urgency_days": 1,
                        "estimated_cost": "500.00",
                    }
                ],
                "estimated_cost": "2840.55",
            }
        }
    )

    asset_id: UUID = Field(..., description="Asset identifier")
    asset_name: str = Field(..., description="Asset display name")
    failure_probability: float = Field(
        ...,
        ge=0.0,
        le=0.95,
        description="Heuristic failure probability",
    )
    risk_level: RiskLevel = Field(..., description="Risk tier")
    predicted_maintenance_date: Optional[Date] = Field(
        None,
        description="Suggested date for the next maintenance",
    )
    horizon_days: int = Field(..., ge=1, description="Prediction horizon")
    recommendations: List[MaintenanceRecommendation] = Field(
        default_factory=list,
        description="Recommended actions, in rule order",
    )
    estimated_cost: Decimal = Field(
        Decimal("0.00"),
        ge=0,
        description="Estimated cost of the next maintenance",
    )

    @computed_field  # type: ignore[misc]
    @property
    def has_sufficient_data(self) -> bool:
        """Whether the prediction was computed from enough history."""
        return self.risk_level != RiskLevel.INSUFFICIENT_DATA
