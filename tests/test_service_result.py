"""Tests for ServiceResult conversions."""

from cafm.core.exceptions import AssetNotFoundError, ErrorCode, ValidationError
from cafm.services.base import ErrorSeverity, ServiceResult

from tests.factories import make_prediction


def test_success_to_dict_serialises_models():
    prediction = make_prediction(0.8, "100.00")

    payload = ServiceResult.success(prediction, metadata={"cached": True}).to_dict()

    assert payload["is_success"] is True
    assert payload["data"]["failure_probability"] == 0.8
    assert payload["data"]["asset_id"] == str(prediction.asset_id)
    assert payload["metadata"] == {"cached": True}


def test_from_app_exception_keeps_code():
    result = ServiceResult.from_exception(
        AssetNotFoundError("a-1"), "predict asset failure", ErrorSeverity.WARNING
    )

    assert not result
    assert result.error.code == ErrorCode.ASSET_NOT_FOUND
    assert result.error.severity == ErrorSeverity.WARNING


def test_from_unexpected_exception():
    result = ServiceResult.from_exception(RuntimeError("boom"), "forecast costs")

    assert result.error.code == ErrorCode.INTERNAL_ERROR
    assert result.error.message == "Failed to forecast costs: boom"
    assert result.error.details == {"exception_type": "RuntimeError"}


def test_failure_to_dict():
    result = ServiceResult.from_exception(
        ValidationError("bad horizon", {"horizon_days": ["got 0"]}), "predict asset failure"
    )

    payload = result.to_dict()

    assert payload["is_success"] is False
    assert "data" not in payload
    assert payload["error"]["code"] == "VALIDATION_ERROR"
    assert payload["error"]["message"] == "bad horizon"
