"""Structured logging with run/stage correlation for refinement runs."""

import logging
import sys
import traceback
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Correlation ids; set by LoggingContext, read on every record
run_context: ContextVar[Optional[str]] = ContextVar('run_id', default=None)
node_context: ContextVar[Optional[str]] = ContextVar('node_id', default=None)
stage_context: ContextVar[Optional[str]] = ContextVar('stage', default=None)

# Keys of ``extra`` that become record attributes instead of plain extras
_STRUCTURED_KEYS = ('context', 'performance', 'traceback')


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def _correlation() -> Dict[str, Any]:
    fields = {
        'run_id': run_context.get(),
        'node_id': node_context.get(),
        'stage': stage_context.get(),
    }
    return {k: v for k, v in fields.items() if v is not None}


def _render_traceback(exc_info: Any) -> Optional[str]:
    """Accepts what ``Logger._log`` accepts: True, an exception or an exc_info tuple."""
    if isinstance(exc_info, BaseException):
        exc_info = (type(exc_info), exc_info, exc_info.__traceback__)
    elif not isinstance(exc_info, tuple):
        exc_info = sys.exc_info()

    if exc_info[0] is None:
        return None
    return ''.join(traceback.format_exception(*exc_info))


class StructuredLogger(logging.Logger):
    """Logger whose records carry ``context``, ``performance`` and ``traceback`` attributes.

    ``context`` merges, in increasing priority: the active run/stage ids,
    persistent fields from ``add_context`` and the caller's
    ``extra={'context': {...}}``. Formatters read these attributes; see
    HumanFormatter and JsonFormatter.
    """

    def __init__(self, name: str):
        super().__init__(name)
        self._context_fields: Dict[str, Any] = {}

    def _log(self, level, msg, args, exc_info=None, extra=None, stack_info=False, **kwargs):
        extra = dict(extra) if isinstance(extra, dict) else {}
        structured = {key: extra.pop(key, None) for key in _STRUCTURED_KEYS}

        structured['context'] = {
            **_correlation(),
            'logger_name': self.name,
            'timestamp': _utc_timestamp(),
            **self._context_fields,
            **(structured['context'] or {})
        }

        if exc_info and not structured['traceback']:
            structured['traceback'] = _render_traceback(exc_info)

        extra.update(structured)

        # The traceback travels as text, so the stdlib must not format it again
        super()._log(level, msg, args, exc_info=False, extra=extra,
                     stack_info=stack_info, **kwargs)

    def add_context(self, **fields):
        """Attach fields to every later record from this logger."""
        self._context_fields.update(fields)

    def remove_context(self, *keys):
        for key in keys:
            self._context_fields.pop(key, None)

    def log_performance(self, operation: str, duration: float, **metrics):
        """Record timing for an operation at DEBUG.

        A ``cells_processed`` metric also yields ``cells_per_second``.

        Example:
            logger.log_performance('subdivide', 0.012, cells_processed=36)
        """
        performance = {
            'operation': operation,
            'duration_seconds': round(duration, 3),
            'timestamp': _utc_timestamp(),
            **metrics
        }
        cells = metrics.get('cells_processed')
        if cells is not None and duration > 0:
            performance['cells_per_second'] = round(cells / duration, 2)

        self.debug(
            f"Performance: {operation} completed in {duration:.3f}s",
            extra={'performance': performance}
        )

    def log_error_with_context(self, error: Exception, operation: Optional[str] = None, **context):
        """Log ``error`` at ERROR with its type, traceback and any extra fields."""
        fields = {
            'error_type': type(error).__name__,
            'error_module': type(error).__module__,
            **context
        }
        if operation:
            fields['operation'] = operation

        self.error(f"{type(error).__name__}: {error}", exc_info=error, extra={'context': fields})


_logger_cache: Dict[str, StructuredLogger] = {}


def get_logger(name: str) -> StructuredLogger:
    """Get the StructuredLogger for ``name``, creating it on first use.

    The global logger class is only swapped for the duration of the lookup,
    so third-party loggers stay plain ``logging.Logger`` instances.

    Example:
        from quadgrid.infrastructure.logging import get_logger
        logger = get_logger(__name__)
    """
    cached = _logger_cache.get(name)
    if cached is not None:
        return cached

    previous = logging.getLoggerClass()
    logging.setLoggerClass(StructuredLogger)
    try:
        logger = logging.getLogger(name)
    finally:
        logging.setLoggerClass(previous)

    _logger_cache[name] = logger
    return logger
