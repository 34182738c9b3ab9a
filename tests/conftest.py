"""
Shared fixtures for the analytics engine tests.
"""

from datetime import datetime, timedelta

import pytest

from cafm.core.background_tasks import BackgroundTaskManager
from cafm.core.config import BackgroundTaskSettings, CacheSettings, Settings
from cafm.repositories.maintenance import InMemoryHistoryGateway
from cafm.services.analytics import PredictiveMaintenanceService
from cafm.services.base import InMemoryBackend, PredictionCache

from tests.factories import AS_OF, COMPANY_ID, build_high_risk_history, make_asset


@pytest.fixture
def as_of() -> datetime:
    return AS_OF


@pytest.fixture
def company_id():
    return COMPANY_ID


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        ENVIRONMENT="testing",
        cache=CacheSettings(CACHE_BACKEND="memory"),
        tasks=BackgroundTaskSettings(TASK_EXECUTION_MODE="thread", WORKER_CONCURRENCY=2),
    )


@pytest.fixture
def gateway() -> InMemoryHistoryGateway:
    return InMemoryHistoryGateway(company_ids=[COMPANY_ID])


@pytest.fixture
def high_risk_asset(gateway):
    asset = make_asset(
        name="Boiler B-2",
        acquisition_date=(AS_OF - timedelta(days=3650)).date(),
        last_maintenance_date=(AS_OF - timedelta(days=200)).date(),
    )
    reports, work_orders = build_high_risk_history(asset)
    gateway.add_asset(asset)
    for report in reports:
        gateway.add_maintenance_record(report)
    for work_order in work_orders:
        gateway.add_work_order(work_order)
    return asset


@pytest.fixture
def cache(test_settings) -> PredictionCache:
    return PredictionCache(InMemoryBackend(), test_settings.cache)


@pytest.fixture
async def service(gateway, cache, test_settings):
    svc = PredictiveMaintenanceService(
        gateway,
        cache=cache,
        task_manager=BackgroundTaskManager(test_settings.tasks),
        config=test_settings,
        clock=lambda: AS_OF,
    )
    yield svc
    await svc.close()
