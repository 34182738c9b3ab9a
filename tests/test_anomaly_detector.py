"""Tests for anomaly detection."""

from datetime import timedelta

import pytest

from cafm.core.config import AnalyticsSettings
from cafm.schemas.common.enums import AnomalyType
from cafm.services.analytics import AnomalyDetector

from tests.factories import AS_OF, make_work_order


def work_orders_costing(*costs):
    return [
        make_work_order(cost, AS_OF - timedelta(days=i + 1))
        for i, cost in enumerate(costs)
    ]


@pytest.fixture
def detector():
    return AnomalyDetector(AnalyticsSettings())


def test_too_few_costed_orders(detector):
    assert detector.detect(work_orders_costing(100, 5000, None, None)) == []


def test_below_threshold(detector):
    # mean 150, threshold 375
    assert detector.detect(work_orders_costing(100, 100, 100, 300)) == []


def test_flags_outlier(detector):
    work_orders = work_orders_costing(100, 100, 100, 1000)

    anomalies = detector.detect(work_orders)

    assert len(anomalies) == 1
    anomaly = anomalies[0]
    assert anomaly.work_order_id == work_orders[3].id
    assert anomaly.anomaly_type == AnomalyType.COST_ANOMALY
    assert anomaly.severity_score == pytest.approx(1000 / 325)
    assert anomaly.severity_score == pytest.approx(3.08, abs=0.01)
    assert anomaly.detected_at == work_orders[3].created_at
    assert anomaly.description == "Work order cost significantly higher than average"


def test_sorted_by_severity(detector):
    work_orders = work_orders_costing(100, 100, 100, 100, 100, 100, 2000, 3000)

    anomalies = detector.detect(work_orders)

    assert [a.work_order_id for a in anomalies] == [work_orders[7].id, work_orders[6].id]
    assert anomalies[0].severity_score > anomalies[1].severity_score


def test_zero_mean(detector):
    assert detector.detect(work_orders_costing(0, 0, 0)) == []


def test_extension_detectors_are_empty(detector):
    work_orders = work_orders_costing(100, 100, 100, 1000)
    assert detector.detect_frequency_anomalies(work_orders) == []
    assert detector.detect_duration_anomalies(work_orders) == []
