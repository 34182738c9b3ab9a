"""
Predictive maintenance service.

Entry point of the analytics engine. Each operation checks the prediction
cache, otherwise reads history through the HistoryGateway and runs the
relevant model on the worker pool, then caches and returns the result.

Public operations return ServiceResult; the ``*_or_raise`` variants return
the bare result and raise application exceptions instead.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

from dateutil.relativedelta import relativedelta

from cafm.core.background_tasks import BackgroundTaskManager
from cafm.core.config import Settings, settings as default_settings
from cafm.core.exceptions import (
    AssetNotFoundError,
    BaseAppException,
    CompanyNotFoundError,
    ComputationError,
    ValidationError,
)
from cafm.core.logging import company_id as company_id_context, setup_logging
from cafm.repositories.maintenance.history_gateway import HistoryGateway
from cafm.schemas.maintenance.anomaly import MaintenanceAnomaly
from cafm.schemas.maintenance.forecast import CostForecast
from cafm.schemas.maintenance.prediction import FailurePrediction
from cafm.schemas.maintenance.schedule import MaintenanceSchedule
from cafm.services.analytics.anomaly_detector import AnomalyDetector
from cafm.services.analytics.cost_forecaster import CostForecaster
from cafm.services.analytics.cost_trend_analyzer import CostTrendAnalyzer
from cafm.services.analytics.failure_risk_model import FailureRiskModel
from cafm.services.analytics.schedule_optimizer import ScheduleOptimizer
from cafm.services.base import BaseService, PredictionCache, ServiceResult

FAILURE_PREDICTIONS = "failure-predictions"
COST_FORECASTS = "cost-forecasts"
ANOMALY_DETECTION = "anomaly-detection"

DEFAULT_FORECAST_MONTHS = 12


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PredictiveMaintenanceService(BaseService):
    """
    Failure prediction, cost forecasting, anomaly detection and scheduling.

    Models are pure; the only state retained across calls is the cache.
    """

    def __init__(
        self,
        gateway: HistoryGateway,
        cache: Optional[PredictionCache] = None,
        task_manager: Optional[BackgroundTaskManager] = None,
        config: Optional[Settings] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        super().__init__(gateway)
        self.settings = config or default_settings
        self.analytics = self.settings.analytics
        self.cache = cache or PredictionCache(config=self.settings.cache)
        self.task_manager = task_manager or BackgroundTaskManager(self.settings.tasks)
        self.clock = clock

        self.risk_model = FailureRiskModel(self.analytics)
        self.trend_analyzer = CostTrendAnalyzer(self.analytics)
        self.forecaster = CostForecaster(self.analytics)
        self.anomaly_detector = AnomalyDetector(self.analytics)
        self.schedule_optimizer = ScheduleOptimizer(self.analytics)

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    async def predict_asset_failure(
        self,
        asset_id: UUID,
        horizon_days: Optional[int] = None,
    ) -> ServiceResult[FailurePrediction]:
        """
        Predict failure risk for one asset.

        Args:
            asset_id: Asset to score
            horizon_days: Prediction horizon, defaults to the configured horizon

        Returns:
            ServiceResult containing the FailurePrediction
        """
        try:
            prediction = await self.predict_asset_failure_or_raise(asset_id, horizon_days)
            return ServiceResult.success(
                prediction,
                message="Failure prediction generated",
                metadata={"horizon_days": prediction.horizon_days},
            )
        except Exception as e:
            return self._handle_exception(
                e,
                "predict asset failure",
                asset_id,
                additional_context={"horizon_days": horizon_days},
            )

    async def forecast_maintenance_costs(
        self,
        company_id: UUID,
        months: int = DEFAULT_FORECAST_MONTHS,
    ) -> ServiceResult[CostForecast]:
        """
        Forecast a company's monthly maintenance costs.

        Args:
            company_id: Company to forecast
            months: Number of calendar months to project, starting next month

        Returns:
            ServiceResult containing the CostForecast
        """
        try:
            forecast = await self.forecast_maintenance_costs_or_raise(company_id, months)
            return ServiceResult.success(
                forecast,
                message="Cost forecast generated",
                metadata={"months": months},
            )
        except Exception as e:
            return self._handle_exception(
                e,
                "forecast maintenance costs",
                company_id,
                additional_context={"months": months},
            )

    async def detect_maintenance_anomalies(
        self,
        company_id: UUID,
    ) -> ServiceResult[List[MaintenanceAnomaly]]:
        """Detect anomalous work orders in the company's recent history."""
        try:
            anomalies = await self.detect_maintenance_anomalies_or_raise(company_id)
            return ServiceResult.success(
                anomalies,
                message=f"{len(anomalies)} anomalies detected",
                metadata={"count": len(anomalies)},
            )
        except Exception as e:
            return self._handle_exception(e, "detect maintenance anomalies", company_id)

    async def generate_optimal_schedule(
        self,
        company_id: UUID,
        horizon_days: Optional[int] = None,
    ) -> ServiceResult[MaintenanceSchedule]:
        """
        Build a risk-ranked maintenance schedule for the company's active assets.

        Args:
            company_id: Company to schedule
            horizon_days: Scheduling window, defaults to the configured horizon

        Returns:
            ServiceResult containing the MaintenanceSchedule
        """
        try:
            schedule = await self.generate_optimal_schedule_or_raise(company_id, horizon_days)
            return ServiceResult.success(
                schedule,
                message="Maintenance schedule generated",
                metadata={"items": schedule.metrics.total_items},
            )
        except Exception as e:
            return self._handle_exception(
                e,
                "generate optimal schedule",
                company_id,
                additional_context={"horizon_days": horizon_days},
            )

    # -------------------------------------------------------------------------
    # Raising variants
    # -------------------------------------------------------------------------

    async def predict_asset_failure_or_raise(
        self,
        asset_id: UUID,
        horizon_days: Optional[int] = None,
    ) -> FailurePrediction:
        horizon = self._validate_horizon(horizon_days)
        self._logger.info(
            "Predicting asset failure",
            extra={"asset_id": str(asset_id), "horizon_days": horizon},
        )

        async def compute() -> FailurePrediction:
            return await self.task_manager.run(
                "predict_asset_failure",
                self._compute_failure_prediction,
                asset_id,
                horizon,
                self.clock(),
            )

        prediction = await self.cache.get_or_compute(
            FAILURE_PREDICTIONS,
            (asset_id, horizon),
            compute,
            FailurePrediction,
            ttl=self.settings.cache.CACHE_FAILURE_PREDICTION_TIMEOUT,
        )
        self._logger.info(
            "Asset failure predicted",
            extra={
                "asset_id": str(asset_id),
                "risk_level": prediction.risk_level.value,
                "failure_probability": prediction.failure_probability,
            },
        )
        return prediction

    async def forecast_maintenance_costs_or_raise(
        self,
        company_id: UUID,
        months: int = DEFAULT_FORECAST_MONTHS,
    ) -> CostForecast:
        if not 1 <= months <= self.analytics.MAX_FORECAST_MONTHS:
            raise ValidationError(
                f"Months must be between 1 and {self.analytics.MAX_FORECAST_MONTHS}",
                {"months": [f"got {months}"]},
            )

        token = company_id_context.set(str(company_id))
        try:
            self._logger.info("Forecasting maintenance costs", extra={"months": months})

            async def compute() -> CostForecast:
                return await self.task_manager.run(
                    "forecast_maintenance_costs",
                    self._compute_cost_forecast,
                    company_id,
                    months,
                    self.clock(),
                )

            forecast = await self.cache.get_or_compute(
                COST_FORECASTS,
                (company_id, months),
                compute,
                CostForecast,
                ttl=self.settings.cache.CACHE_COST_FORECAST_TIMEOUT,
            )
            self._logger.info(
                "Maintenance costs forecast",
                extra={
                    "trend_direction": forecast.trend_analysis.trend_direction.value,
                    "recommended_budget": str(forecast.budget_recommendation.recommended_budget),
                },
            )
            return forecast
        finally:
            company_id_context.reset(token)

    async def detect_maintenance_anomalies_or_raise(
        self,
        company_id: UUID,
    ) -> List[MaintenanceAnomaly]:
        token = company_id_context.set(str(company_id))
        try:
            self._logger.info("Detecting maintenance anomalies")

            async def compute() -> List[MaintenanceAnomaly]:
                return await self.task_manager.run(
                    "detect_maintenance_anomalies",
                    self._compute_anomalies,
                    company_id,
                    self.clock(),
                )

            anomalies = await self.cache.get_or_compute(
                ANOMALY_DETECTION,
                (company_id,),
                compute,
                List[MaintenanceAnomaly],
                ttl=self.settings.cache.CACHE_ANOMALY_TIMEOUT,
            )
            self._logger.info(
                "Maintenance anomalies detected",
                extra={"count": len(anomalies)},
            )
            return anomalies
        finally:
            company_id_context.reset(token)

    async def generate_optimal_schedule_or_raise(
        self,
        company_id: UUID,
        horizon_days: Optional[int] = None,
    ) -> MaintenanceSchedule:
        horizon = self._validate_horizon(horizon_days)

        token = company_id_context.set(str(company_id))
        try:
            self._logger.info(
                "Generating maintenance schedule",
                extra={"horizon_days": horizon},
            )
            as_of = self.clock()
            assets = await self.task_manager.run(
                "find_active_assets",
                self._load_active_assets,
                company_id,
            )

            outcomes = await asyncio.gather(
                *(self.predict_asset_failure_or_raise(asset.id, horizon) for asset in assets),
                return_exceptions=True,
            )
            failures = [o for o in outcomes if isinstance(o, BaseException)]
            if failures:
                self._logger.warning(
                    "Asset predictions failed while scheduling",
                    extra={"failed": len(failures), "assets_evaluated": len(assets)},
                )
                raise failures[0]
            predictions = outcomes

            try:
                schedule = self.schedule_optimizer.build_schedule(
                    company_id, predictions, horizon, as_of
                )
            except Exception as e:
                raise ComputationError(
                    "generate optimal schedule",
                    cause=e,
                    details={"company_id": str(company_id)},
                ) from e

            self._logger.info(
                "Maintenance schedule generated",
                extra={
                    "assets_evaluated": len(assets),
                    "total_items": schedule.metrics.total_items,
                    "total_estimated_cost": str(schedule.metrics.total_estimated_cost),
                },
            )
            return schedule
        finally:
            company_id_context.reset(token)

    # -------------------------------------------------------------------------
    # Cache management
    # -------------------------------------------------------------------------

    async def invalidate_asset(self, asset_id: UUID) -> int:
        """Drop cached predictions after an asset's history changed."""
        return await self.cache.invalidate(FAILURE_PREDICTIONS, asset_id)

    async def invalidate_company(self, company_id: UUID) -> int:
        """Drop cached forecasts and anomaly reports for a company."""
        removed = await self.cache.invalidate(COST_FORECASTS, company_id)
        removed += await self.cache.invalidate(ANOMALY_DETECTION, company_id)
        return removed

    async def clear_cache(self) -> int:
        return await self.cache.clear()

    def get_statistics(self) -> Dict[str, Any]:
        return {
            "cache": self.cache.get_stats(),
            "tasks": self.task_manager.stats.get_stats(),
        }

    async def close(self) -> None:
        self.task_manager.shutdown()
        await self.cache.close()

    # -------------------------------------------------------------------------
    # Computations (run on the worker pool)
    # -------------------------------------------------------------------------

    def _compute_failure_prediction(
        self,
        asset_id: UUID,
        horizon_days: int,
        as_of: datetime,
    ) -> FailurePrediction:
        asset = self.gateway.find_asset(asset_id)
        if asset is None:
            raise AssetNotFoundError(asset_id)

        reports = self.gateway.get_asset_maintenance_reports(asset_id)
        work_orders = self.gateway.get_asset_maintenance_history(asset_id)

        return self._run_model(
            "predict asset failure",
            {"asset_id": str(asset_id)},
            self.risk_model.predict,
            asset,
            reports,
            work_orders,
            horizon_days,
            as_of,
        )

    def _compute_cost_forecast(
        self,
        company_id: UUID,
        months: int,
        as_of: datetime,
    ) -> CostForecast:
        self._require_company(company_id)
        start = as_of - relativedelta(months=self.analytics.FORECAST_HISTORY_MONTHS)
        work_orders = self.gateway.find_work_orders_by_company_and_date_range(
            company_id, start, as_of
        )

        def build() -> CostForecast:
            monthly = self.trend_analyzer.aggregate_monthly(work_orders)
            trend = self.trend_analyzer.fit(monthly)
            projected = self.forecaster.forecast(trend, months, as_of)
            return CostForecast(
                company_id=company_id,
                historical_monthly_costs=monthly,
                forecasted_monthly_costs=projected,
                trend_analysis=trend,
                budget_recommendation=self.forecaster.recommend_budget(projected, trend),
                generated_at=as_of,
            )

        return self._run_model(
            "forecast maintenance costs",
            {"company_id": str(company_id)},
            build,
        )

    def _compute_anomalies(
        self,
        company_id: UUID,
        as_of: datetime,
    ) -> List[MaintenanceAnomaly]:
        self._require_company(company_id)
        start = as_of - relativedelta(months=self.analytics.ANOMALY_LOOKBACK_MONTHS)
        work_orders = self.gateway.find_work_orders_by_company_and_date_range(
            company_id, start, as_of
        )
        return self._run_model(
            "detect maintenance anomalies",
            {"company_id": str(company_id)},
            self.anomaly_detector.detect,
            work_orders,
        )

    def _load_active_assets(self, company_id: UUID):
        self._require_company(company_id)
        return self.gateway.find_active_assets_by_company(company_id)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _require_company(self, company_id: UUID) -> None:
        if not self.gateway.company_exists(company_id):
            raise CompanyNotFoundError(company_id)

    def _validate_horizon(self, horizon_days: Optional[int]) -> int:
        horizon = (
            self.analytics.DEFAULT_PREDICTION_HORIZON_DAYS
            if horizon_days is None
            else horizon_days
        )
        if not 1 <= horizon <= self.analytics.MAX_PREDICTION_HORIZON_DAYS:
            raise ValidationError(
                f"Horizon days must be between 1 and {self.analytics.MAX_PREDICTION_HORIZON_DAYS}",
                {"horizon_days": [f"got {horizon}"]},
            )
        return horizon

    @staticmethod
    def _run_model(operation: str, details: Dict[str, Any], func, *args):
        """Run a model function, reporting any unexpected failure as ComputationError."""
        try:
            return func(*args)
        except BaseAppException:
            raise
        except Exception as e:
            raise ComputationError(operation, cause=e, details=details) from e


def create_predictive_maintenance_service(
    gateway: HistoryGateway,
    config: Optional[Settings] = None,
    configure_logging: bool = True,
    **kwargs,
) -> PredictiveMaintenanceService:
    """
    Build a service with the configured cache backend and worker pool.

    Args:
        gateway: History source
        config: Settings, defaults to the process settings
        configure_logging: Whether to install logging handlers
        **kwargs: Forwarded to PredictiveMaintenanceService

    Returns:
        Ready-to-use PredictiveMaintenanceService
    """
    if configure_logging:
        setup_logging()
    return PredictiveMaintenanceService(gateway, config=config, **kwargs)


__all__ = [
    "PredictiveMaintenanceService",
    "create_predictive_maintenance_service",
    "FAILURE_PREDICTIONS",
    "COST_FORECASTS",
    "ANOMALY_DETECTION",
]
