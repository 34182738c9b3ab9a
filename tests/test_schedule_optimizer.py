"""Tests for schedule optimization."""

from datetime import timedelta
from decimal import Decimal

import pytest

from cafm.core.config import AnalyticsSettings
from cafm.schemas.common.enums import MaintenanceType, RiskLevel
from cafm.services.analytics import ScheduleOptimizer, maintenance_type_for

from tests.factories import AS_OF, COMPANY_ID, make_prediction


@pytest.fixture
def optimizer():
    return ScheduleOptimizer(AnalyticsSettings())


@pytest.mark.parametrize(
    "risk_level,expected",
    [
        (RiskLevel.CRITICAL, MaintenanceType.EMERGENCY),
        (RiskLevel.HIGH, MaintenanceType.URGENT_PREVENTIVE),
        (RiskLevel.MEDIUM, MaintenanceType.SCHEDULED_PREVENTIVE),
        (RiskLevel.LOW, MaintenanceType.ROUTINE),
        (RiskLevel.INSUFFICIENT_DATA, MaintenanceType.ROUTINE),
    ],
)
def test_maintenance_type(risk_level, expected):
    assert maintenance_type_for(risk_level) == expected


def test_threshold_is_exclusive(optimizer):
    predictions = [
        make_prediction(0.75, 100, name="at threshold"),
        make_prediction(0.5, 100, RiskLevel.HIGH, name="high"),
        make_prediction(0.0, 0, RiskLevel.INSUFFICIENT_DATA, name="unknown"),
        make_prediction(0.76, 100, name="included"),
    ]

    schedule = optimizer.build_schedule(COMPANY_ID, predictions, 90, AS_OF)

    assert [item.asset_name for item in schedule.items] == ["included"]
    assert all(item.failure_probability > 0.75 for item in schedule.items)


def test_ordering_and_tiebreak(optimizer):
    predictions = [
        make_prediction(0.8, 800, name="pricey"),
        make_prediction(0.9, 900, name="riskiest"),
        make_prediction(0.8, 400, name="cheap"),
    ]

    schedule = optimizer.build_schedule(COMPANY_ID, predictions, 90, AS_OF)

    assert [item.asset_name for item in schedule.items] == ["riskiest", "cheap", "pricey"]
    assert schedule.items[0].maintenance_type == MaintenanceType.EMERGENCY
    assert schedule.items[0].scheduled_date == AS_OF.date() + timedelta(days=10)


def test_metrics(optimizer):
    predictions = [
        make_prediction(0.8, "800.00"),
        make_prediction(0.9, "900.50"),
    ]

    schedule = optimizer.build_schedule(COMPANY_ID, predictions, 30, AS_OF)

    assert schedule.metrics.total_items == 2
    assert schedule.metrics.total_estimated_cost == Decimal("1700.50")
    assert schedule.metrics.average_failure_probability == pytest.approx(0.85)
    assert schedule.metrics.critical_item_count == 2
    assert schedule.window_start == AS_OF
    assert schedule.window_end == AS_OF + timedelta(days=30)


def test_empty_schedule(optimizer):
    schedule = optimizer.build_schedule(COMPANY_ID, [], 90, AS_OF)

    assert schedule.items == []
    assert schedule.metrics.total_items == 0
    assert schedule.metrics.total_estimated_cost == Decimal("0.00")
    assert schedule.metrics.average_failure_probability == 0.0
