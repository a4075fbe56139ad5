"""Structured logging infrastructure for refinement runs."""

from .structured_logger import (
    StructuredLogger, get_logger, node_context, run_context, stage_context
)
from .context import LoggingContext
from .decorators import log_operation
from .setup import setup_logging, setup_simple_logging

__all__ = [
    'StructuredLogger',
    'get_logger',
    'LoggingContext',
    'run_context',
    'node_context',
    'stage_context',
    'log_operation',
    'setup_logging',
    'setup_simple_logging',
]
