"""
Base service class providing common functionality for analytics services.
"""

from typing import Any, Dict, Optional

from cafm.core.exceptions import ResourceNotFoundError, ValidationError
from cafm.core.logging import get_logger
from cafm.repositories.maintenance.history_gateway import HistoryGateway
from cafm.services.base.service_result import ServiceResult, ErrorSeverity


class BaseService:
    """
    Base service with common behaviors:
    - Shared logger and history gateway
    - Consistent error handling via ServiceResult
    """

    def __init__(self, gateway: HistoryGateway):
        """
        Initialize base service.

        Args:
            gateway: Read-only history source
        """
        self.gateway = gateway
        self._logger = get_logger(self.__class__.__name__)

    # -------------------------------------------------------------------------
    # Exception & Error Handling
    # -------------------------------------------------------------------------

    def _handle_exception(
        self,
        exception: Exception,
        operation: str,
        entity_ref: Optional[Any] = None,
        additional_context: Optional[Dict[str, Any]] = None,
    ) -> ServiceResult:
        """
        Convert exception to a ServiceResult failure with logging.

        Lookup and validation failures are expected outcomes and logged at
        WARNING without a traceback; everything else is logged at ERROR.

        Args:
            exception: The caught exception
            operation: Description of the operation that failed
            entity_ref: Reference to the entity involved (asset or company id)
            additional_context: Extra context for logging/debugging

        Returns:
            ServiceResult with failure status and error details
        """
        entity = str(entity_ref) if entity_ref is not None else None
        context = {
            "operation": operation,
            "entity_ref": entity,
            "exception_type": type(exception).__name__,
        }
        if additional_context:
            context.update(additional_context)

        if isinstance(exception, (ResourceNotFoundError, ValidationError)):
            severity = ErrorSeverity.WARNING
            self._logger.warning(f"{operation} rejected: {exception}", extra=context)
        else:
            severity = ErrorSeverity.ERROR
            self._logger.error(
                f"Error during {operation}: {exception}",
                exc_info=True,
                extra=context,
            )

        result = ServiceResult.from_exception(exception, operation, severity)
        result.error.details["entity_ref"] = entity
        if additional_context:
            result.error.details["context"] = additional_context
        return result
