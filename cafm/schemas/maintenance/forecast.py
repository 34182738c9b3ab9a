"""
Cost trend and forecast schemas.

Monthly series are ordered sequences of ``MonthlyCost`` entries keyed by
``YYYY-MM`` period, oldest first.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, List
from uuid import UUID

from pydantic import ConfigDict, Field, computed_field, field_validator

from cafm.schemas.common.base import BaseSchema
from cafm.schemas.common.enums import TrendDirection

__all__ = [
    "MonthlyCost",
    "TrendAnalysis",
    "BudgetRecommendation",
    "CostForecast",
]


class MonthlyCost(BaseSchema):
    """Cost total for one calendar month."""

    period: str = Field(
        ...,
        pattern=r"^\d{4}-(0[1-9]|1[0-2])$",
        description="Month identifier (YYYY-MM)",
    )
    amount: Decimal = Field(..., description="Summed cost for the month")


class TrendAnalysis(BaseSchema):
    """Linear trend fitted over monthly cost totals."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "monthly_growth_rate": 0.042,
                "trend_direction": "INCREASING",
                "average_monthly_cost": 12500.0,
                "slope": 525.0,
                "r_squared": 0.87,
            }
        }
    )

    monthly_growth_rate: float = Field(
        0.0,
        description="Regression slope relative to the average monthly cost",
    )
    trend_direction: TrendDirection = Field(
        TrendDirection.STABLE,
        description="Direction of the fitted trend",
    )
    average_monthly_cost: float = Field(
        0.0,
        ge=0,
        description="Mean of the monthly totals",
    )
    slope: float = Field(0.0, description="Least-squares slope per month")
    r_squared: float = Field(
        0.0,
        ge=0,
        le=1,
        description="Coefficient of determination of the fit",
    )


class BudgetRecommendation(BaseSchema):
    """Budget advice derived from a cost forecast."""

    recommended_budget: Decimal = Field(
        ...,
        ge=0,
        description="Forecast total plus contingency",
    )
    budget_alert: str = Field(..., description="Qualitative budget advice")
    trend_direction: TrendDirection = Field(..., description="Underlying trend")


class CostForecast(BaseSchema):
    """Company maintenance cost forecast."""

    company_id: UUID = Field(..., description="Company identifier")
    historical_monthly_costs: List[MonthlyCost] = Field(
        default_factory=list,
        description="Observed monthly totals, oldest first",
    )
    forecasted_monthly_costs: List[MonthlyCost] = Field(
        default_factory=list,
        description="Projected monthly totals, starting next month",
    )
    trend_analysis: TrendAnalysis = Field(..., description="Fitted trend")
    budget_recommendation: BudgetRecommendation = Field(
        ...,
        description="Recommended budget",
    )
    generated_at: datetime = Field(..., description="Generation timestamp")

    @field_validator("forecasted_monthly_costs")
    @classmethod
    def validate_consecutive_periods(cls, v: List[MonthlyCost]) -> List[MonthlyCost]:
        periods = [item.period for item in v]
        if len(set(periods)) != len(periods):
            raise ValueError("Forecast periods must be unique")
        return v

    @computed_field  # type: ignore[misc]
    @property
    def forecast_total(self) -> Decimal:
        """Sum of forecasted months."""
        return sum(
            (item.amount for item in self.forecasted_monthly_costs),
            Decimal("0.00"),
        )

    def forecast_as_dict(self) -> Dict[str, Decimal]:
        """Forecasted series as an insertion-ordered period -> amount mapping."""
        return {item.period: item.amount for item in self.forecasted_monthly_costs}

    def history_as_dict(self) -> Dict[str, Decimal]:
        """Historical series as an insertion-ordered period -> amount mapping."""
        return {item.period: item.amount for item in self.historical_monthly_costs}
