"""Decorator timing an operation and logging its failures."""

import functools
import logging
import time
from typing import Any, Callable, Optional, TypeVar

from .structured_logger import get_logger, stage_context

F = TypeVar('F', bound=Callable[..., Any])


def _result_size(result: Any) -> Optional[int]:
    """Length of a sized result (Grid, region set); None for scalars and strings."""
    if isinstance(result, (str, bytes)):
        return None
    try:
        return len(result)
    except TypeError:
        return None


def log_operation(operation_name: Optional[str] = None, log_performance: bool = True):
    """Log start, duration and failure of the wrapped callable.

    Failures are re-raised unchanged. Outside a LoggingContext stage they
    are logged at ERROR with the traceback; inside one they get a DEBUG
    record and the stage logs the error. On success the duration is
    logged at DEBUG together with ``cells_processed`` when the result has
    a length.

    Example:
        @log_operation("subdivide")
        def subdivide(self, grid, ids):
            ...
    """
    def decorator(func: F) -> F:
        name = operation_name or func.__name__
        logger = get_logger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            logger.debug(f"Starting {name}", extra={'context': {'operation': name}})
            started = time.time()

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                # Inside a LoggingContext stage the stage reports the error once
                in_stage = stage_context.get() is not None
                logger.log(
                    logging.DEBUG if in_stage else logging.ERROR,
                    f"Failed {name}: {e}",
                    exc_info=not in_stage,
                    extra={
                        'context': {'operation': name},
                        'performance': {
                            'duration': time.time() - started,
                            'status': 'failed',
                            'error_type': type(e).__name__
                        }
                    }
                )
                raise

            if log_performance:
                metrics = {'status': 'success'}
                size = _result_size(result)
                if size is not None:
                    metrics['cells_processed'] = size
                logger.log_performance(name, time.time() - started, **metrics)

            return result

        return wrapper  # type: ignore
    return decorator
