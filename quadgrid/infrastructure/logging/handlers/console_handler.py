"""Console handler for interactive runs."""

import logging
import os
import sys

from ..formatters import HumanFormatter


def _wants_color(stream) -> bool:
    """ANSI colors only on a real terminal that has not opted out (NO_COLOR, TERM=dumb)."""
    isatty = getattr(stream, 'isatty', None)
    if isatty is None or not isatty():
        return False
    return not os.environ.get('NO_COLOR') and os.environ.get('TERM', '') != 'dumb'


class ConsoleHandler(logging.StreamHandler):
    """Human-readable handler writing to stderr, so stdout stays free for grid tables."""

    def __init__(self, stream=None, use_colors=None, show_context: bool = True):
        stream = stream if stream is not None else sys.stderr
        super().__init__(stream)
        self.setLevel(logging.INFO)
        self.setFormatter(HumanFormatter(
            use_colors=_wants_color(stream) if use_colors is None else use_colors,
            show_context=show_context
        ))
