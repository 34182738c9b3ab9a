from cafm.services.base.base_service import BaseService
from cafm.services.base.cache_service import (
    CacheBackend,
    CacheStats,
    InMemoryBackend,
    PredictionCache,
    RedisBackend,
)
from cafm.services.base.service_result import (
    ErrorCode,
    ErrorSeverity,
    ServiceError,
    ServiceResult,
)

__all__ = [
    "BaseService",
    "CacheBackend",
    "CacheStats",
    "InMemoryBackend",
    "PredictionCache",
    "RedisBackend",
    "ErrorCode",
    "ErrorSeverity",
    "ServiceError",
    "ServiceResult",
]
