"""
Configuration Management

Centralized configuration management using Pydantic Settings for type safety
and environment variable integration.
"""

from typing import Optional
from functools import lru_cache

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, model_validator


_ENV_CONFIG = {
    "env_file": ".env",
    "env_file_encoding": "utf-8",
    "case_sensitive": True,
    "extra": "ignore"
}


class RedisSettings(BaseSettings):
    """Redis configuration settings"""

    REDIS_HOST: str = Field(default="localhost")
    REDIS_PORT: int = Field(default=6379)
    REDIS_PASSWORD: Optional[str] = Field(default=None)
    REDIS_DB: int = Field(default=0)
    REDIS_SSL: bool = Field(default=False)

    # Connection settings
    REDIS_MAX_CONNECTIONS: int = Field(default=50)
    REDIS_RETRY_ON_TIMEOUT: bool = Field(default=True)
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5)
    REDIS_SOCKET_TIMEOUT: int = Field(default=30)

    model_config = _ENV_CONFIG

    @property
    def redis_url(self) -> str:
        """Generate Redis URL"""
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        protocol = "rediss" if self.REDIS_SSL else "redis"
        return f"{protocol}://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


class CacheSettings(BaseSettings):
    """Cache configuration settings"""

    CACHE_BACKEND: str = Field(default="memory")  # memory or redis
    CACHE_DEFAULT_TIMEOUT: int = Field(default=300)
    CACHE_KEY_PREFIX: str = Field(default="cafm:analytics:")

    # Cache timeouts for the analytics operations
    CACHE_FAILURE_PREDICTION_TIMEOUT: int = Field(default=3600)
    CACHE_COST_FORECAST_TIMEOUT: int = Field(default=3600)
    CACHE_ANOMALY_TIMEOUT: int = Field(default=1800)

    model_config = _ENV_CONFIG

    @field_validator('CACHE_BACKEND')
    @classmethod
    def validate_backend(cls, v):
        valid_backends = ['memory', 'redis']
        if v.lower() not in valid_backends:
            raise ValueError(f'Cache backend must be one of {valid_backends}')
        return v.lower()


class LoggingSettings(BaseSettings):
    """Logging configuration settings"""

    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json")  # json or text
    LOG_FILE: Optional[str] = Field(default=None)
    LOG_ROTATION: str = Field(default="daily")  # daily or size
    LOG_RETENTION: int = Field(default=30)  # days

    # Structured logging
    ENABLE_STRUCTURED_LOGGING: bool = Field(default=True)

    model_config = _ENV_CONFIG

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Log level must be one of {valid_levels}')
        return v.upper()


class BackgroundTaskSettings(BaseSettings):
    """Background task configuration"""

    TASK_EXECUTION_MODE: str = Field(default="thread")  # thread or inline
    WORKER_CONCURRENCY: int = Field(default=4, ge=1)
    TASK_TIMEOUT: Optional[float] = Field(default=300)  # seconds, None disables

    model_config = _ENV_CONFIG

    @field_validator('TASK_EXECUTION_MODE')
    @classmethod
    def validate_mode(cls, v):
        valid_modes = ['thread', 'inline']
        if v.lower() not in valid_modes:
            raise ValueError(f'Task execution mode must be one of {valid_modes}')
        return v.lower()


class AnalyticsSettings(BaseSettings):
    """Predictive maintenance model constants"""

    # Failure model weights
    AGE_WEIGHT: float = Field(default=0.25, ge=0)
    FREQUENCY_WEIGHT: float = Field(default=0.30, ge=0)
    COST_TREND_WEIGHT: float = Field(default=0.20, ge=0)
    SEVERITY_WEIGHT: float = Field(default=0.25, ge=0)

    # Failure model thresholds
    MIN_HISTORICAL_DATA_POINTS: int = Field(default=10, ge=1)
    FAILURE_PREDICTION_THRESHOLD: float = Field(default=0.75, ge=0, le=1)
    DEFAULT_PREDICTION_HORIZON_DAYS: int = Field(default=90, ge=1)
    MAX_PREDICTION_HORIZON_DAYS: int = Field(default=3650, ge=1)

    # Cost estimation
    COST_INFLATION_FACTOR: float = Field(default=0.03, ge=0)  # annual
    PREVENTIVE_COST_MULTIPLIER: float = Field(default=0.7, ge=0)
    COST_TREND_SAMPLE_SIZE: int = Field(default=3, ge=1)

    # Forecasting
    BUDGET_CONTINGENCY: float = Field(default=0.2, ge=0)
    FORECAST_HISTORY_MONTHS: int = Field(default=12, ge=1)
    MAX_FORECAST_MONTHS: int = Field(default=36, ge=1)

    # Anomaly detection
    ANOMALY_COST_MULTIPLIER: float = Field(default=2.5, gt=0)
    ANOMALY_MIN_SAMPLE_SIZE: int = Field(default=3, ge=1)
    ANOMALY_LOOKBACK_MONTHS: int = Field(default=6, ge=1)

    model_config = {**_ENV_CONFIG, "env_prefix": "ANALYTICS_"}

    @model_validator(mode='after')
    def validate_weights(self):
        total = (
            self.AGE_WEIGHT
            + self.FREQUENCY_WEIGHT
            + self.COST_TREND_WEIGHT
            + self.SEVERITY_WEIGHT
        )
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f'Failure model weights must sum to 1.0, got {total:.4f}')
        return self


class Settings(BaseSettings):
    """Main application settings"""

    # Environment
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # Project information
    PROJECT_NAME: str = Field(default="CAFM Predictive Maintenance")
    PROJECT_VERSION: str = Field(default="1.0.0")

    # Include all sub-settings
    redis: RedisSettings = Field(default_factory=RedisSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    tasks: BackgroundTaskSettings = Field(default_factory=BackgroundTaskSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)

    model_config = _ENV_CONFIG

    @field_validator('ENVIRONMENT')
    @classmethod
    def validate_environment(cls, v):
        valid_envs = ['development', 'staging', 'production', 'testing']
        if v not in valid_envs:
            raise ValueError(f'Environment must be one of {valid_envs}')
        return v

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_testing(self) -> bool:
        return self.ENVIRONMENT == "testing"


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings"""
    return Settings()


# Global settings instance
settings = get_settings()
