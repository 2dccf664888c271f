"""
Base service for the studio client.

Provides common functionality for all service classes:
- Logging under the service's class name
- Operation timing with slow-operation warnings
"""

import logging
import time
from functools import wraps
from typing import Any, Awaitable, Callable, Dict, TypeVar

from ..session import SessionContext

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

SLOW_OPERATION_SECONDS = 1.0


class BaseService:
    """
    Base class for service layer components.

    Services read identity from the shared ``SessionContext`` and reach the
    data service only through repositories.
    """

    def __init__(self, context: SessionContext) -> None:
        self.context = context
        self.logger = logging.getLogger(self.__class__.__name__)
        self._metrics: Dict[str, Dict[str, float]] = {}

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Decorator to time an async service operation.

        Usage:
            @BaseService.measure_operation("book_class")
            async def book_class(self, schedule_id): ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            async def wrapper(self: "BaseService", *args: Any, **kwargs: Any) -> Any:
                start_time = time.monotonic()
                success = False
                try:
                    result = await func(self, *args, **kwargs)
                    success = True
                    return result
                finally:
                    elapsed = time.monotonic() - start_time
                    self._record_metric(operation_name, elapsed, success)
                    if elapsed > SLOW_OPERATION_SECONDS:
                        self.logger.warning(
                            "Slow operation detected: %s took %.2fs", operation_name, elapsed
                        )

            return wrapper  # type: ignore[return-value]

        return decorator

    def _record_metric(self, operation: str, elapsed: float, success: bool) -> None:
        stats = self._metrics.setdefault(
            operation, {"count": 0, "failures": 0, "total_time": 0.0}
        )
        stats["count"] += 1
        stats["total_time"] += elapsed
        if not success:
            stats["failures"] += 1

    def get_metrics(self) -> Dict[str, Dict[str, float]]:
        """Snapshot of per-operation call counts, failures and total time."""
        return {name: dict(stats) for name, stats in self._metrics.items()}
