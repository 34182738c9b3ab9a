"""
Cost forecasting and budget recommendation.

Projects the fitted monthly trend forward with compound growth and a
sinusoidal seasonal swing of plus or minus ten percent over the year.
"""

import math
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence

from dateutil.relativedelta import relativedelta

from cafm.core.config import AnalyticsSettings, settings
from cafm.core.logging import log_execution_time
from cafm.schemas.common.enums import TrendDirection
from cafm.schemas.maintenance.forecast import (
    BudgetRecommendation,
    MonthlyCost,
    TrendAnalysis,
)

CENTS = Decimal("0.01")
SEASONAL_AMPLITUDE = 0.1

BUDGET_ALERTS = {
    TrendDirection.INCREASING: "Consider increasing budget allocation due to rising maintenance costs",
    TrendDirection.DECREASING: "Budget efficiency improving, consider reallocating excess funds",
    TrendDirection.STABLE: "Maintain current budget allocation with standard contingency",
}


def seasonal_factor(month: int) -> float:
    return 1 + SEASONAL_AMPLITUDE * math.sin((month - 1) * math.pi / 6)


class CostForecaster:
    """Forward projection of a TrendAnalysis."""

    def __init__(self, config: Optional[AnalyticsSettings] = None):
        self.config = config or settings.analytics

    @log_execution_time("cost_forecast")
    def forecast(
        self,
        trend: TrendAnalysis,
        months: int,
        as_of: datetime,
    ) -> List[MonthlyCost]:
        """
        Forecast the ``months`` calendar months following ``as_of``.

        Args:
            trend: Fitted monthly trend
            months: Number of months to project
            as_of: Reference time; the first forecast month is the next one

        Returns:
            One entry per month, in calendar order
        """
        first_of_month = as_of.date().replace(day=1)
        # Growth below -100% a month decays to zero rather than alternating sign
        growth = max(1 + trend.monthly_growth_rate, 0.0)

        projected = []
        for i in range(months):
            month_start = first_of_month + relativedelta(months=i + 1)
            amount = (
                trend.average_monthly_cost
                * growth ** (i + 1)
                * seasonal_factor(month_start.month)
            )
            projected.append(
                MonthlyCost(
                    period=month_start.strftime("%Y-%m"),
                    amount=Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP),
                )
            )
        return projected

    def recommend_budget(
        self,
        forecast: Sequence[MonthlyCost],
        trend: TrendAnalysis,
    ) -> BudgetRecommendation:
        total = sum((item.amount for item in forecast), Decimal("0"))
        contingency = Decimal("1") + Decimal(str(self.config.BUDGET_CONTINGENCY))

        return BudgetRecommendation(
            recommended_budget=(total * contingency).quantize(CENTS, rounding=ROUND_HALF_UP),
            budget_alert=BUDGET_ALERTS[trend.trend_direction],
            trend_direction=trend.trend_direction,
        )
