"""
Logging Configuration and Utilities

Structured logging for the analytics engine. Handlers emit JSON (or
coloured text in development) and every record carries the company the
current operation runs for.
"""

import sys
import time
import logging
import logging.handlers
from typing import Optional
from datetime import datetime, timezone
from pathlib import Path
from contextvars import ContextVar
from functools import wraps

import colorlog
import structlog
from pythonjsonlogger.json import JsonFormatter

from .config import settings

# Company the current analytics operation runs for
company_id: ContextVar[Optional[str]] = ContextVar('company_id', default=None)

SERVICE_NAME = 'cafm-analytics'
SLOW_OPERATION_SECONDS = 5.0

_RECORD_FORMAT = '%(asctime)s %(name)s %(levelname)s %(message)s'


class CompanyContextFilter(logging.Filter):
    """Stamp the active company onto each record"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.company_id = company_id.get()
        return True


def add_service_context(logger, method_name, event_dict):
    """structlog processor mirroring CompanyContextFilter"""
    tenant = company_id.get()
    if tenant:
        event_dict['company_id'] = tenant
    event_dict['service'] = SERVICE_NAME
    event_dict['environment'] = settings.ENVIRONMENT
    event_dict['timestamp'] = datetime.now(timezone.utc).isoformat()
    return event_dict


def flag_slow_operations(logger, method_name, event_dict):
    duration = event_dict.get('execution_time')
    if duration is not None and duration > SLOW_OPERATION_SECONDS:
        event_dict['slow'] = True
    return event_dict


class AnalyticsJsonFormatter(JsonFormatter):
    """JSON formatter adding source location and tenant fields"""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['function'] = record.funcName
        log_record['line'] = record.lineno
        log_record['service'] = SERVICE_NAME

        tenant = getattr(record, 'company_id', None)
        if tenant:
            log_record['company_id'] = tenant
        else:
            log_record.pop('company_id', None)

        if record.exc_info:
            log_record['exception'] = self.formatException(record.exc_info)


def _console_formatter() -> logging.Formatter:
    if settings.logging.LOG_FORMAT == "json":
        return AnalyticsJsonFormatter(_RECORD_FORMAT)
    return colorlog.ColoredFormatter(
        '%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        log_colors={
            'DEBUG': 'cyan',
            'INFO': 'green',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'red,bg_white',
        },
    )


def _file_handler(path: Path) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    if settings.logging.LOG_ROTATION == "size":
        return logging.handlers.RotatingFileHandler(
            path, maxBytes=10 * 1024 * 1024, backupCount=5
        )
    return logging.handlers.TimedRotatingFileHandler(
        path, when='midnight', backupCount=settings.logging.LOG_RETENTION
    )


class LoggingConfig:
    """Centralized logging configuration"""

    @staticmethod
    def configure_structured_logging():
        renderer = (
            structlog.processors.JSONRenderer()
            if settings.logging.LOG_FORMAT == "json"
            else structlog.processors.KeyValueRenderer()
        )
        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                add_service_context,
                flag_slow_operations,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.format_exc_info,
                renderer,
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

    @staticmethod
    def configure_standard_logging():
        level = getattr(logging, settings.logging.LOG_LEVEL)
        context_filter = CompanyContextFilter()

        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(_console_formatter())
        handlers = [console_handler]

        if settings.logging.LOG_FILE:
            file_handler = _file_handler(Path(settings.logging.LOG_FILE))
            file_handler.setFormatter(AnalyticsJsonFormatter(_RECORD_FORMAT))
            handlers.append(file_handler)

        for handler in handlers:
            handler.setLevel(level)
            handler.addFilter(context_filter)
            root_logger.addHandler(handler)

        logging.getLogger("redis").setLevel(logging.WARNING)
        logging.getLogger("asyncio").setLevel(logging.WARNING)


class LoggerAdapter:
    """Thin wrapper giving every call an ``extra`` mapping"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _log(self, level: int, message: str, *args, **kwargs):
        kwargs['extra'] = dict(kwargs.get('extra') or {})
        self.logger.log(level, message, *args, **kwargs)

    def debug(self, message: str, *args, **kwargs):
        self._log(logging.DEBUG, message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs):
        self._log(logging.INFO, message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs):
        self._log(logging.WARNING, message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs):
        self._log(logging.ERROR, message, *args, **kwargs)


def get_logger(name: str) -> LoggerAdapter:
    return LoggerAdapter(logging.getLogger(name))


def log_execution_time(operation: str):
    """
    Decorator timing a synchronous model entry point.

    Successful calls are logged at DEBUG and failures at WARNING, both with
    ``operation`` and ``execution_time`` (seconds) in the record.
    """
    def decorator(func):
        logger = get_logger(func.__module__)

        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.warning(f"{operation} failed", extra={
                    'operation': operation,
                    'execution_time': time.perf_counter() - start_time,
                    'error_type': type(e).__name__,
                })
                raise

            logger.debug(f"{operation} completed", extra={
                'operation': operation,
                'execution_time': time.perf_counter() - start_time,
            })
            return result

        return wrapper

    return decorator


def setup_logging():
    """Initialize logging configuration"""
    if settings.logging.ENABLE_STRUCTURED_LOGGING:
        LoggingConfig.configure_structured_logging()

    LoggingConfig.configure_standard_logging()

    get_logger(__name__).debug("Logging system initialized", extra={
        'log_level': settings.logging.LOG_LEVEL,
        'log_format': settings.logging.LOG_FORMAT,
    })


__all__ = [
    'get_logger',
    'setup_logging',
    'log_execution_time',
    'LoggerAdapter',
    'LoggingConfig',
    'CompanyContextFilter',
    'company_id',
]
