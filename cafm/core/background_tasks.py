"""
Background Task Management

Runs analytics computations either inline on the event loop or on a
thread pool, returning an awaitable handle to the caller.
"""

import asyncio
import contextvars
import time
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, Optional, TypeVar

from .config import BackgroundTaskSettings, settings
from .exceptions import TaskExecutionError, TaskTimeoutError
from .logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ExecutionMode(str, Enum):
    """Where submitted work runs"""
    INLINE = "inline"
    THREAD = "thread"


class TaskStats:
    """Task execution statistics"""

    def __init__(self):
        self.submitted = 0
        self.succeeded = 0
        self.failed = 0
        self.timed_out = 0
        self.total_execution_time = 0.0

    def get_stats(self) -> Dict[str, Any]:
        completed = self.succeeded + self.failed
        return {
            "submitted": self.submitted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "timed_out": self.timed_out,
            "average_execution_time": (
                self.total_execution_time / completed if completed else 0.0
            ),
        }


class BackgroundTaskManager:
    """Runs blocking model functions off the event loop"""

    def __init__(self, config: Optional[BackgroundTaskSettings] = None):
        self.config = config or settings.tasks
        self.mode = ExecutionMode(self.config.TASK_EXECUTION_MODE)
        self.timeout = self.config.TASK_TIMEOUT
        self.stats = TaskStats()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._closed = False

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.config.WORKER_CONCURRENCY,
                thread_name_prefix="cafm-analytics",
            )
            logger.info(
                "Analytics worker pool started",
                extra={"workers": self.config.WORKER_CONCURRENCY},
            )
        return self._executor

    async def run(self, task_name: str, func: Callable[..., T], *args, **kwargs) -> T:
        """
        Execute a blocking callable and return its result.

        Args:
            task_name: Name used in logs and errors
            func: Callable to execute
            *args: Positional arguments for func
            **kwargs: Keyword arguments for func

        Returns:
            Whatever func returns; exceptions raised by func propagate unchanged

        Raises:
            TaskExecutionError: If the manager has been shut down
            TaskTimeoutError: If the callable exceeds the configured timeout
        """
        if self._closed:
            raise TaskExecutionError("Task manager is shut down", task_name)

        self.stats.submitted += 1
        start_time = time.perf_counter()

        try:
            if self.mode == ExecutionMode.INLINE:
                result = func(*args, **kwargs)
            else:
                # Worker threads see the caller's context variables
                context = contextvars.copy_context()
                loop = asyncio.get_running_loop()
                future = loop.run_in_executor(
                    self._get_executor(), partial(context.run, func, *args, **kwargs)
                )
                if self.timeout:
                    result = await asyncio.wait_for(future, timeout=self.timeout)
                else:
                    result = await future
        except asyncio.TimeoutError:
            self.stats.timed_out += 1
            self.stats.failed += 1
            logger.error(
                f"Task timed out: {task_name}",
                extra={"task_name": task_name, "timeout": self.timeout},
            )
            raise TaskTimeoutError(task_name, self.timeout)
        except Exception:
            self.stats.failed += 1
            self.stats.total_execution_time += time.perf_counter() - start_time
            raise

        execution_time = time.perf_counter() - start_time
        self.stats.succeeded += 1
        self.stats.total_execution_time += execution_time
        logger.debug(
            f"Task completed: {task_name}",
            extra={"task_name": task_name, "execution_time": execution_time},
        )
        return result

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work and release worker threads"""
        self._closed = True
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
            logger.info("Analytics worker pool stopped")


__all__ = [
    "ExecutionMode",
    "TaskStats",
    "BackgroundTaskManager",
]
