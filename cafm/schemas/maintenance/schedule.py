"""
Optimized maintenance schedule schemas.
"""

from __future__ import annotations

from datetime import date as Date, datetime
from decimal import Decimal
from typing import List
from uuid import UUID

from pydantic import Field, model_validator

from cafm.schemas.common.base import BaseSchema
from cafm.schemas.common.enums import MaintenanceType
from cafm.schemas.maintenance.prediction import MaintenanceRecommendation

__all__ = [
    "ScheduledMaintenanceItem",
    "ScheduleMetrics",
    "MaintenanceSchedule",
]


class ScheduledMaintenanceItem(BaseSchema):
    """One asset slotted into the maintenance schedule."""

    asset_id: UUID = Field(..., description="Asset identifier")
    asset_name: str = Field(..., description="Asset display name")
    scheduled_date: Date = Field(..., description="Planned maintenance date")
    failure_probability: float = Field(..., ge=0.0, le=0.95)
    estimated_cost: Decimal = Field(..., ge=0)
    maintenance_type: MaintenanceType = Field(..., description="Maintenance kind")
    recommendations: List[MaintenanceRecommendation] = Field(default_factory=list)


class ScheduleMetrics(BaseSchema):
    """Aggregate figures for a schedule."""

    total_items: int = Field(0, ge=0)
    total_estimated_cost: Decimal = Field(Decimal("0.00"), ge=0)
    average_failure_probability: float = Field(0.0, ge=0.0, le=0.95)
    critical_item_count: int = Field(0, ge=0)


class MaintenanceSchedule(BaseSchema):
    """Ranked maintenance schedule for a company."""

    company_id: UUID = Field(..., description="Company identifier")
    items: List[ScheduledMaintenanceItem] = Field(
        default_factory=list,
        description="Items ordered by priority",
    )
    metrics: ScheduleMetrics = Field(default_factory=ScheduleMetrics)
    window_start: datetime = Field(..., description="Schedule window start")
    window_end: datetime = Field(..., description="Schedule window end")

    @model_validator(mode="after")
    def validate_window(self) -> "MaintenanceSchedule":
        if self.window_end < self.window_start:
            raise ValueError("window_end must not precede window_start")
        return self
