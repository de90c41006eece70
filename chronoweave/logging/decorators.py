"""
Decorators for automatic logging of history operations.

These decorators enable traceability without cluttering engine logic.
"""

import functools
import inspect
import time
from datetime import datetime, timezone
from typing import Any, Callable

from .logger import get_chrono_logger, log_history_operation


def track_history_operation(operation_type: str, component: str = "branching") -> Callable:
    """
    Decorator to track history operations.

    Logs commits, forks, branch switches and other operations together with
    their (truncated) arguments.

    Args:
        operation_type: Type of operation (e.g., "commit", "fork", "switch")
        component: Component the operation belongs to

    Example:
        >>> @track_history_operation("commit")
        ... def commit(self, label=None):
        ...     ...
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)
        log = get_chrono_logger(component)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            bound_args = signature.bind(*args, **kwargs)
            bound_args.apply_defaults()

            operation_id = datetime.now(timezone.utc).timestamp()
            log_history_operation(
                log,
                operation=operation_type,
                operation_id=operation_id,
                function=func.__name__,
                arguments={
                    k: str(v)[:100]
                    for k, v in bound_args.arguments.items()
                    if k != "self"
                },
            )

            try:
                result = func(*args, **kwargs)

                log_history_operation(
                    log,
                    operation=f"{operation_type}_complete",
                    operation_id=operation_id,
                    function=func.__name__,
                    success=True,
                )

                return result

            except Exception as e:
                log_history_operation(
                    log,
                    operation=f"{operation_type}_error",
                    operation_id=operation_id,
                    function=func.__name__,
                    error=str(e),
                    error_type=type(e).__name__,
                    success=False,
                )
                raise

        return wrapper

    return decorator


def performance_monitor(threshold_ms: float = 1000.0) -> Callable:
    """
    Decorator to monitor function performance.

    Logs warning if execution exceeds threshold.

    Args:
        threshold_ms: Warning threshold in milliseconds

    Example:
        >>> @performance_monitor(threshold_ms=50)
        ... def get_snapshot_at(self, index):
        ...     ...
    """

    def decorator(func: Callable) -> Callable:
        log = get_chrono_logger("system")

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = time.perf_counter()

            try:
                result = func(*args, **kwargs)
                elapsed_ms = (time.perf_counter() - start_time) * 1000

                if elapsed_ms > threshold_ms:
                    log.warning(
                        f"Performance threshold exceeded: {func.__name__}",
                        function=func.__name__,
                        elapsed_ms=elapsed_ms,
                        threshold_ms=threshold_ms,
                    )

                return result

            except Exception:
                elapsed_ms = (time.perf_counter() - start_time) * 1000
                log.debug(
                    f"Function failed: {func.__name__}",
                    function=func.__name__,
                    elapsed_ms=elapsed_ms,
                )
                raise

        return wrapper

    return decorator
