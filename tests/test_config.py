"""Tests for settings validation."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from cafm.core.config import (
    AnalyticsSettings,
    BackgroundTaskSettings,
    CacheSettings,
    LoggingSettings,
    RedisSettings,
    Settings,
)


def test_analytics_defaults():
    config = AnalyticsSettings()

    assert (
        config.AGE_WEIGHT,
        config.FREQUENCY_WEIGHT,
        config.COST_TREND_WEIGHT,
        config.SEVERITY_WEIGHT,
    ) == (0.25, 0.30, 0.20, 0.25)
    assert config.MIN_HISTORICAL_DATA_POINTS == 10
    assert config.FAILURE_PREDICTION_THRESHOLD == 0.75
    assert config.COST_TREND_SAMPLE_SIZE == 3


def test_weights_must_sum_to_one():
    with pytest.raises(PydanticValidationError, match="sum to 1.0"):
        AnalyticsSettings(AGE_WEIGHT=0.5)


def test_weights_from_environment(monkeypatch):
    monkeypatch.setenv("ANALYTICS_AGE_WEIGHT", "0.30")
    monkeypatch.setenv("ANALYTICS_SEVERITY_WEIGHT", "0.20")

    config = AnalyticsSettings()

    assert config.AGE_WEIGHT == 0.30
    assert config.SEVERITY_WEIGHT == 0.20


def test_log_level_normalised():
    assert LoggingSettings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"
    with pytest.raises(PydanticValidationError):
        LoggingSettings(LOG_LEVEL="VERBOSE")


def test_cache_backend_validation():
    assert CacheSettings(CACHE_BACKEND="Redis").CACHE_BACKEND == "redis"
    with pytest.raises(PydanticValidationError):
        CacheSettings(CACHE_BACKEND="memcached")


def test_task_mode_validation():
    with pytest.raises(PydanticValidationError):
        BackgroundTaskSettings(TASK_EXECUTION_MODE="process")


def test_redis_url():
    config = RedisSettings(REDIS_HOST="cache", REDIS_PASSWORD="s3cret", REDIS_SSL=True, REDIS_DB=2)
    assert config.redis_url == "rediss://:s3cret@cache:6379/2"


def test_environment_validation():
    assert Settings(ENVIRONMENT="testing").is_testing
    with pytest.raises(PydanticValidationError):
        Settings(ENVIRONMENT="qa")
