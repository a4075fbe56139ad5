"""Run and stage scopes that tag every record with correlation ids."""

import time
import uuid
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from .structured_logger import (
    _utc_timestamp, get_logger, node_context, run_context, stage_context
)


class LoggingContext:
    """Correlates the log records of one refinement run.

    A run is a ``pipeline`` scope holding ``stage`` scopes (``build``,
    ``pass_1``, ...). Records emitted inside carry ``run_id`` and ``stage``
    in their context, and every scope's duration and outcome is kept in
    ``timings`` under a slash-joined node id.
    """

    def __init__(self, run_id: Optional[str] = None):
        self.run_id = run_id or str(uuid.uuid4())
        self.node_stack: List[str] = []
        self.stage_stack: List[str] = []
        self.timings: Dict[str, Dict[str, Any]] = {}
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")

    @contextmanager
    def pipeline(self, name: str, **metadata):
        """Open the run scope.

        Example:
            with ctx.pipeline('refine', iterations=3):
                ...
        """
        run_token = run_context.set(self.run_id)
        try:
            with self._scope(f"pipeline_{name}", 'pipeline_name', name, metadata):
                yield self
        finally:
            run_context.reset(run_token)

    @contextmanager
    def stage(self, name: str, **metadata):
        """Open a stage inside the current pipeline; failures are logged then re-raised.

        Example:
            with ctx.stage('pass_1'):
                ...
        """
        parent = self.current_node or "unknown"
        self.stage_stack.append(name)
        stage_context.set(name)
        try:
            with self._scope(f"{parent}/{name}", 'stage_name', name, metadata, log_failure=True):
                yield self
        finally:
            self.stage_stack.pop()
            stage_context.set(self.current_stage)

    @contextmanager
    def _scope(self, node_id: str, label: str, name: str, metadata: Dict[str, Any],
               log_failure: bool = False):
        self.node_stack.append(node_id)
        node_context.set(node_id)
        self.logger.debug(f"Started {node_id}", extra={'context': {label: name, **metadata}})

        started = time.time()
        status = 'failed'
        try:
            yield
            status = 'completed'
        except Exception as e:
            if log_failure:
                self.logger.log_error_with_context(e, operation=f"stage_{name}")
            raise
        finally:
            duration = time.time() - started
            self.timings[node_id] = {
                'duration': duration,
                'status': status,
                'timestamp': _utc_timestamp()
            }
            self.logger.log_performance(node_id.replace('/', '.'), duration, status=status)

            self.node_stack.pop()
            node_context.set(self.current_node)

    def get_timings(self) -> Dict[str, Dict[str, Any]]:
        return self.timings.copy()

    @property
    def current_node(self) -> Optional[str]:
        return self.node_stack[-1] if self.node_stack else None

    @property
    def current_stage(self) -> Optional[str]:
        return self.stage_stack[-1] if self.stage_stack else None
