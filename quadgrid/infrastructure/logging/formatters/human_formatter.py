"""Console formatter: one readable line per record, plus timing and traceback."""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

_ANSI = {
    'DEBUG': '\033[36m',
    'INFO': '',
    'WARNING': '\033[93m',
    'ERROR': '\033[91m',
    'CRITICAL': '\033[95m',
}
_RESET = '\033[0m'
_DIM = '\033[2m'


class HumanFormatter(logging.Formatter):
    """Render ``time LEVEL [logger] [run:xxxxxxxx | stage:name] message``.

    Performance and traceback attributes set by StructuredLogger are
    appended on indented lines.
    """

    def __init__(self, use_colors: bool = True, show_context: bool = True):
        super().__init__()
        self.use_colors = use_colors
        self.show_context = show_context

    def _paint(self, text: str, code: str) -> str:
        if not self.use_colors or not code:
            return text
        return f"{code}{text}{_RESET}"

    def format(self, record: logging.LogRecord) -> str:
        color = _ANSI.get(record.levelname, '')
        when = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')

        parts = [
            self._paint(when, _DIM),
            self._paint(f"{record.levelname:8}", color),
            self._paint(f"[{self._short_name(record.name)}]", _DIM),
        ]
        if self.show_context:
            tag = self._correlation_tag(getattr(record, 'context', None))
            if tag:
                parts.append(tag)
        parts.append(record.getMessage())
        lines = [' '.join(parts)]

        timing = self._timing(getattr(record, 'performance', None))
        if timing:
            lines.append(self._paint(f"  Performance: {timing}", _DIM))

        tb = getattr(record, 'traceback', None)
        if tb:
            lines.extend(self._paint(f"  {line}", color) for line in tb.rstrip().splitlines())

        return '\n'.join(lines)

    @staticmethod
    def _short_name(name: str) -> str:
        """Last two dotted components, e.g. ``refinement.driver``."""
        return '.'.join(name.split('.')[-2:])

    @staticmethod
    def _correlation_tag(context: Optional[Dict[str, Any]]) -> str:
        if not context:
            return ''
        tags = []
        if context.get('run_id'):
            tags.append(f"run:{str(context['run_id'])[:8]}")
        if context.get('stage'):
            tags.append(f"stage:{context['stage']}")
        return f"[{' | '.join(tags)}]" if tags else ''

    @staticmethod
    def _timing(performance: Optional[Dict[str, Any]]) -> str:
        if not performance:
            return ''
        tags = []
        if 'duration_seconds' in performance:
            tags.append(f"{performance['duration_seconds']:.3f}s")
        if 'cells_per_second' in performance:
            tags.append(f"{performance['cells_per_second']:.1f} cells/s")
        return ' | '.join(tags)
