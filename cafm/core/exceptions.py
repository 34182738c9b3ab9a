"""
Custom Exceptions for the Predictive Maintenance Engine

This module defines custom exception classes used throughout the engine
for better error handling and debugging.
"""

from typing import Any, Dict, List, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Lookup errors
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    ASSET_NOT_FOUND = "ASSET_NOT_FOUND"
    COMPANY_NOT_FOUND = "COMPANY_NOT_FOUND"

    # Analytics errors
    COMPUTATION_FAILED = "COMPUTATION_FAILED"

    # Cache and execution errors
    CACHE_ERROR = "CACHE_ERROR"
    TASK_EXECUTION_ERROR = "TASK_EXECUTION_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# General Application Exceptions
# ========================================

class ValidationError(BaseAppException):
    """Exception raised when request arguments fail validation"""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, List[str]]] = None,
    ):
        details = {"field_errors": field_errors} if field_errors else {}
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details)


class ResourceNotFoundError(BaseAppException):
    """Exception raised when a requested resource is not found"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.RESOURCE_NOT_FOUND,
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, error_code, details)


class AssetNotFoundError(ResourceNotFoundError):
    """Exception raised when an asset is not found"""

    def __init__(self, asset_id: Optional[Any] = None):
        super().__init__(
            "Asset",
            str(asset_id) if asset_id is not None else None,
            error_code=ErrorCode.ASSET_NOT_FOUND,
        )


class CompanyNotFoundError(ResourceNotFoundError):
    """Exception raised when a company is not found"""

    def __init__(self, company_id: Optional[Any] = None):
        super().__init__(
            "Company",
            str(company_id) if company_id is not None else None,
            error_code=ErrorCode.COMPANY_NOT_FOUND,
        )


# ========================================
# Analytics Exceptions
# ========================================

class ComputationError(BaseAppException):
    """Exception raised when an analytics model fails on its input"""

    def __init__(
        self,
        operation: str,
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        message = f"Failed to {operation}"
        details = dict(details or {})
        if cause is not None:
            details.setdefault("cause_type", type(cause).__name__)
            details.setdefault("cause", str(cause))
        super().__init__(message, ErrorCode.COMPUTATION_FAILED, details)
        self.operation = operation


# ========================================
# Infrastructure Exceptions
# ========================================

class CacheError(BaseAppException):
    """Exception raised for cache backend failures"""

    def __init__(
        self,
        message: str = "Cache operation failed",
        cache_key: Optional[str] = None,
    ):
        details = {"cache_key": cache_key} if cache_key else {}
        super().__init__(message, ErrorCode.CACHE_ERROR, details)


class TaskExecutionError(BaseAppException):
    """Exception raised when background work cannot be executed"""

    def __init__(
        self,
        message: str = "Task execution failed",
        task_name: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.TASK_EXECUTION_ERROR,
    ):
        details = {"task_name": task_name} if task_name else {}
        super().__init__(message, error_code, details)


class TaskTimeoutError(TaskExecutionError):
    """Exception raised when background work exceeds its time limit"""

    def __init__(self, task_name: Optional[str] = None, timeout: Optional[float] = None):
        message = "Task timed out"
        if timeout is not None:
            message += f" after {timeout}s"
        super().__init__(message, task_name, ErrorCode.TIMEOUT_ERROR)


__all__ = [
    "ErrorCode",
    "BaseAppException",
    "ValidationError",
    "ResourceNotFoundError",
    "AssetNotFoundError",
    "CompanyNotFoundError",
    "ComputationError",
    "CacheError",
    "TaskExecutionError",
    "TaskTimeoutError",
]
