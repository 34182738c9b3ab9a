"""End-to-end tests for the predictive maintenance service."""

from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP
from uuid import uuid4

import pytest

from cafm.core.background_tasks import BackgroundTaskManager
from cafm.core.config import BackgroundTaskSettings
from cafm.core.exceptions import (
    AssetNotFoundError,
    CompanyNotFoundError,
    ErrorCode,
    ValidationError,
)
from cafm.schemas.common.enums import (
    AnomalyType,
    AssetStatus,
    MaintenanceType,
    RecommendationType,
    RiskLevel,
    TrendDirection,
)
from cafm.services.analytics import (
    PredictiveMaintenanceService,
    create_predictive_maintenance_service,
)

from tests.factories import (
    AS_OF,
    COMPANY_ID,
    make_asset,
    make_reports,
    make_work_order,
)


def add_company_work_orders(gateway, costs, spacing_days=30):
    """One work order per ``spacing_days``, oldest first, ending just before AS_OF."""
    count = len(costs)
    for i, cost in enumerate(costs):
        gateway.add_work_order(
            make_work_order(cost, AS_OF - timedelta(days=spacing_days * (count - i) - 1))
        )


class TestPredictAssetFailure:

    @pytest.mark.integration
    async def test_high_risk_asset(self, service, high_risk_asset):
        result = await service.predict_asset_failure(high_risk_asset.id)

        assert result.is_success
        prediction = result.data
        assert prediction.asset_name == "Boiler B-2"
        assert prediction.horizon_days == 90
        assert prediction.risk_level in (RiskLevel.HIGH, RiskLevel.CRITICAL)
        assert prediction.recommendations
        assert any(
            "preventive maintenance" in r.description.lower()
            for r in prediction.recommendations
        )
        assert prediction.estimated_cost > Decimal("0")

    async def test_insufficient_data_is_a_success(self, service, gateway):
        asset = make_asset()
        gateway.add_asset(asset)
        for report in make_reports(asset, 3):
            gateway.add_maintenance_record(report)

        result = await service.predict_asset_failure(asset.id, 30)

        assert result.is_success
        assert result.data.risk_level == RiskLevel.INSUFFICIENT_DATA
        assert result.data.failure_probability == 0.0
        assert result.data.recommendations == []

    async def test_unknown_asset(self, service):
        result = await service.predict_asset_failure(uuid4())

        assert not result.is_success
        assert result.error.code == ErrorCode.ASSET_NOT_FOUND
        assert service.cache.stats.sets == 0

    async def test_unknown_asset_raises(self, service):
        with pytest.raises(AssetNotFoundError):
            await service.predict_asset_failure_or_raise(uuid4())

    @pytest.mark.parametrize("horizon", [0, -5, 3651])
    async def test_invalid_horizon(self, service, high_risk_asset, horizon):
        result = await service.predict_asset_failure(high_risk_asset.id, horizon)

        assert not result.is_success
        assert result.error.code == ErrorCode.VALIDATION_ERROR

    async def test_idempotent_and_cached(self, service, high_risk_asset):
        first = await service.predict_asset_failure_or_raise(high_risk_asset.id, 90)
        second = await service.predict_asset_failure_or_raise(high_risk_asset.id, 90)

        assert first == second
        assert service.cache.stats.hits == 1
        assert service.task_manager.stats.submitted == 1

    async def test_invalidate_asset_forces_recompute(self, service, gateway, high_risk_asset):
        before = await service.predict_asset_failure_or_raise(high_risk_asset.id)
        for report in make_reports(high_risk_asset, 5, spacing_days=2):
            gateway.add_maintenance_record(report)

        stale = await service.predict_asset_failure_or_raise(high_risk_asset.id)
        assert stale == before

        assert await service.invalidate_asset(high_risk_asset.id) == 1
        fresh = await service.predict_asset_failure_or_raise(high_risk_asset.id)
        assert fresh.predicted_maintenance_date != before.predicted_maintenance_date

    async def test_model_failure_is_reported_once_and_not_cached(
        self, service, high_risk_asset, monkeypatch
    ):
        original = service.risk_model.predict

        def explode(*args, **kwargs):
            raise ZeroDivisionError("bad history")

        monkeypatch.setattr(service.risk_model, "predict", explode)
        result = await service.predict_asset_failure(high_risk_asset.id)

        assert not result.is_success
        assert result.data is None
        assert result.error.code == ErrorCode.COMPUTATION_FAILED
        assert result.error.details["cause_type"] == "ZeroDivisionError"

        monkeypatch.setattr(service.risk_model, "predict", original)
        result = await service.predict_asset_failure(high_risk_asset.id)
        assert result.is_success


class TestForecastMaintenanceCosts:

    async def test_rising_costs(self, service, gateway):
        add_company_work_orders(gateway, [1000, 1200, 1400, 1600, 1800, 2000])

        result = await service.forecast_maintenance_costs(COMPANY_ID, 6)

        assert result.is_success
        forecast = result.data
        assert forecast.company_id == COMPANY_ID
        assert len(forecast.historical_monthly_costs) == 6
        assert [m.period for m in forecast.forecasted_monthly_costs] == [
            "2024-07", "2024-08", "2024-09", "2024-10", "2024-11", "2024-12",
        ]
        assert forecast.trend_analysis.trend_direction == TrendDirection.INCREASING
        assert forecast.budget_recommendation.recommended_budget == (
            forecast.forecast_total * Decimal("1.2")
        ).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        assert forecast.generated_at == AS_OF

    async def test_history_window(self, service, gateway):
        gateway.add_work_order(make_work_order(99999, AS_OF - timedelta(days=800)))
        add_company_work_orders(gateway, [500, 500])

        forecast = await service.forecast_maintenance_costs_or_raise(COMPANY_ID, 3)

        assert sum(m.amount for m in forecast.historical_monthly_costs) == Decimal("1000")
        assert forecast.trend_analysis.trend_direction == TrendDirection.STABLE

    async def test_no_history(self, service):
        forecast = await service.forecast_maintenance_costs_or_raise(COMPANY_ID, 12)

        assert len(forecast.forecasted_monthly_costs) == 12
        assert all(m.amount == Decimal("0.00") for m in forecast.forecasted_monthly_costs)

    async def test_unknown_company(self, service):
        result = await service.forecast_maintenance_costs(uuid4(), 6)

        assert result.error.code == ErrorCode.COMPANY_NOT_FOUND

    @pytest.mark.parametrize("months", [0, 37])
    async def test_invalid_months(self, service, months):
        with pytest.raises(ValidationError):
            await service.forecast_maintenance_costs_or_raise(COMPANY_ID, months)


class TestDetectMaintenanceAnomalies:

    async def test_flags_outlier_in_lookback(self, service, gateway):
        add_company_work_orders(gateway, [100, 100, 100, 1000], spacing_days=20)
        # outside the six month window
        gateway.add_work_order(make_work_order(50000, AS_OF - timedelta(days=250)))

        result = await service.detect_maintenance_anomalies(COMPANY_ID)

        assert result.is_success
        assert result.metadata["count"] == 1
        anomaly = result.data[0]
        assert anomaly.anomaly_type == AnomalyType.COST_ANOMALY
        assert anomaly.severity_score == pytest.approx(1000 / 325)

    async def test_invalidate_company(self, service, gateway):
        add_company_work_orders(gateway, [100, 100, 100])
        assert await service.detect_maintenance_anomalies_or_raise(COMPANY_ID) == []

        gateway.add_work_order(make_work_order(5000, AS_OF - timedelta(hours=1)))
        assert await service.detect_maintenance_anomalies_or_raise(COMPANY_ID) == []

        await service.invalidate_company(COMPANY_ID)
        anomalies = await service.detect_maintenance_anomalies_or_raise(COMPANY_ID)
        assert len(anomalies) == 1

    async def test_unknown_company_raises(self, service):
        with pytest.raises(CompanyNotFoundError):
            await service.detect_maintenance_anomalies_or_raise(uuid4())


class TestGenerateOptimalSchedule:

    @pytest.mark.integration
    async def test_only_critical_assets_are_scheduled(self, service, gateway, high_risk_asset):
        quiet = make_asset(name="Pump P-7")
        gateway.add_asset(quiet)
        for report in make_reports(quiet, 10, spacing_days=90):
            gateway.add_maintenance_record(report)

        result = await service.generate_optimal_schedule(COMPANY_ID, 365)

        assert result.is_success
        schedule = result.data
        assert [item.asset_id for item in schedule.items] == [high_risk_asset.id]
        item = schedule.items[0]
        assert item.failure_probability > 0.75
        assert item.maintenance_type == MaintenanceType.EMERGENCY
        assert RecommendationType.IMMEDIATE_INSPECTION in [r.type for r in item.recommendations]
        assert schedule.metrics.total_items == 1
        assert schedule.metrics.critical_item_count == 1
        assert schedule.window_end == AS_OF + timedelta(days=365)

    async def test_inactive_assets_are_skipped(self, service, gateway, high_risk_asset):
        gateway.add_asset(high_risk_asset.model_copy(update={"status": AssetStatus.RETIRED}))

        schedule = await service.generate_optimal_schedule_or_raise(COMPANY_ID, 365)

        assert schedule.items == []
        assert schedule.metrics.average_failure_probability == 0.0

    async def test_reuses_cached_predictions(self, service, high_risk_asset):
        await service.predict_asset_failure_or_raise(high_risk_asset.id, 365)
        await service.generate_optimal_schedule_or_raise(COMPANY_ID, 365)

        assert service.cache.stats.hits == 1

    async def test_failing_assets_fail_the_schedule_once(
        self, service, gateway, high_risk_asset, monkeypatch
    ):
        second = make_asset(name="Chiller CH-9")
        gateway.add_asset(second)
        for report in make_reports(second, 10):
            gateway.add_maintenance_record(report)

        def explode(*args, **kwargs):
            raise ZeroDivisionError("bad history")

        monkeypatch.setattr(service.risk_model, "predict", explode)
        result = await service.generate_optimal_schedule(COMPANY_ID, 365)

        assert result.error.code == ErrorCode.COMPUTATION_FAILED
        assert service.task_manager.stats.failed == 2
        assert service.cache.stats.sets == 0
        assert service.cache.get_stats()["in_flight"] == 0

    async def test_unknown_company(self, service):
        result = await service.generate_optimal_schedule(uuid4())

        assert result.error.code == ErrorCode.COMPANY_NOT_FOUND


async def test_inline_execution(gateway, cache, test_settings, high_risk_asset):
    service = PredictiveMaintenanceService(
        gateway,
        cache=cache,
        task_manager=BackgroundTaskManager(
            BackgroundTaskSettings(TASK_EXECUTION_MODE="inline")
        ),
        config=test_settings,
        clock=lambda: AS_OF,
    )

    result = await service.predict_asset_failure(high_risk_asset.id)

    assert result.is_success
    assert service.get_statistics()["tasks"]["succeeded"] == 1
    await service.close()


async def test_factory(gateway, test_settings):
    service = create_predictive_maintenance_service(
        gateway, config=test_settings, configure_logging=False
    )

    assert service.analytics.FAILURE_PREDICTION_THRESHOLD == 0.75
    assert service.cache.config.CACHE_BACKEND == "memory"
    await service.close()
