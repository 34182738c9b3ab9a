"""Tests for logging helpers."""

import json
import logging

import pytest

from cafm.core.logging import (
    AnalyticsJsonFormatter,
    CompanyContextFilter,
    company_id,
    log_execution_time,
)
from cafm.schemas.common.enums import RiskLevel
from cafm.services.analytics import FailureRiskModel

from tests.factories import AS_OF, make_asset


def make_record(message="event"):
    return logging.LogRecord("cafm.test", logging.INFO, __file__, 1, message, None, None)


def test_execution_time_logged_for_model_entry_point(caplog):
    model = FailureRiskModel()
    caplog.set_level(logging.DEBUG, logger="cafm.services.analytics.failure_risk_model")

    prediction = model.predict(make_asset(), [], [], 30, AS_OF)

    assert prediction.risk_level == RiskLevel.INSUFFICIENT_DATA
    timed = [r for r in caplog.records if getattr(r, "operation", None) == "failure_prediction"]
    assert len(timed) == 1
    assert timed[0].levelno == logging.DEBUG
    assert timed[0].execution_time >= 0


def test_execution_time_logged_on_failure(caplog):
    @log_execution_time("exploding")
    def explode():
        raise ArithmeticError("bad input")

    with caplog.at_level(logging.WARNING, logger=__name__):
        with pytest.raises(ArithmeticError):
            explode()

    record = caplog.records[-1]
    assert record.operation == "exploding"
    assert record.error_type == "ArithmeticError"


def test_company_filter_stamps_active_company():
    context_filter = CompanyContextFilter()
    token = company_id.set("company-7")
    try:
        record = make_record()
        assert context_filter.filter(record)
    finally:
        company_id.reset(token)

    assert record.company_id == "company-7"

    outside = make_record()
    context_filter.filter(outside)
    assert outside.company_id is None


def test_json_formatter_includes_company_only_when_set():
    formatter = AnalyticsJsonFormatter("%(message)s")
    context_filter = CompanyContextFilter()

    token = company_id.set("company-7")
    try:
        record = make_record("forecast ready")
        context_filter.filter(record)
    finally:
        company_id.reset(token)
    anonymous = make_record("startup")
    context_filter.filter(anonymous)

    payload = json.loads(formatter.format(record))
    assert payload["message"] == "forecast ready"
    assert payload["company_id"] == "company-7"
    assert payload["service"] == "cafm-analytics"
    assert "company_id" not in json.loads(formatter.format(anonymous))
