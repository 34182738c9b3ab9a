"""
Monthly cost aggregation and linear trend fitting.
"""

import statistics
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from cafm.core.config import AnalyticsSettings, settings
from cafm.core.logging import log_execution_time
from cafm.schemas.common.enums import TrendDirection
from cafm.schemas.maintenance.forecast import MonthlyCost, TrendAnalysis
from cafm.schemas.maintenance.history import WorkOrderRecord

# Minimum slope, in currency per month, treated as a real trend
TREND_SLOPE_THRESHOLD = 0.1


class CostTrendAnalyzer:
    """Buckets work order costs per calendar month and fits an OLS line."""

    def __init__(self, config: Optional[AnalyticsSettings] = None):
        self.config = config or settings.analytics

    def aggregate_monthly(self, work_orders: Iterable[WorkOrderRecord]) -> List[MonthlyCost]:
        """Sum work order costs per ``YYYY-MM``, oldest month first."""
        buckets: Dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
        for wo in work_orders:
            if wo.total_cost is None:
                continue
            buckets[wo.created_at.strftime("%Y-%m")] += wo.total_cost

        return [
            MonthlyCost(period=period, amount=buckets[period])
            for period in sorted(buckets)
        ]

    def analyze(self, work_orders: Iterable[WorkOrderRecord]) -> TrendAnalysis:
        return self.fit(self.aggregate_monthly(work_orders))

    @log_execution_time("cost_trend_fit")
    def fit(self, monthly_costs: Sequence[MonthlyCost]) -> TrendAnalysis:
        """
        Fit ``y = a + b*x`` over x = 1..n.

        Fewer than two months yields a neutral STABLE analysis.
        """
        n = len(monthly_costs)
        if n < 2:
            return TrendAnalysis()

        ys = [float(item.amount) for item in monthly_costs]
        xs = list(range(1, n + 1))

        sum_x = sum(xs)
        sum_y = sum(ys)
        sum_xy = sum(x * y for x, y in zip(xs, ys))
        sum_xx = sum(x * x for x in xs)

        slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)
        average = statistics.mean(ys)
        growth_rate = slope / average if average != 0 else 0.0

        if slope > TREND_SLOPE_THRESHOLD:
            direction = TrendDirection.INCREASING
        elif slope < -TREND_SLOPE_THRESHOLD:
            direction = TrendDirection.DECREASING
        else:
            direction = TrendDirection.STABLE

        return TrendAnalysis(
            monthly_growth_rate=growth_rate,
            trend_direction=direction,
            average_monthly_cost=max(average, 0.0),
            slope=slope,
            r_squared=self._r_squared(xs, ys, slope, average),
        )

    @staticmethod
    def _r_squared(xs: List[int], ys: List[float], slope: float, average: float) -> float:
        mean_x = statistics.mean(xs)
        intercept = average - slope * mean_x

        ss_tot = sum((y - average) ** 2 for y in ys)
        if ss_tot == 0:
            return 0.0
        ss_res = sum((y - (intercept + slope * x)) ** 2 for x, y in zip(xs, ys))
        return min(max(1.0 - ss_res / ss_tot, 0.0), 1.0)
