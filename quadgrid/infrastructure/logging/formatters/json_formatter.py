"""JSON-lines formatter for log files."""

import json
import logging
from datetime import datetime


class JsonFormatter(logging.Formatter):
    """One compact JSON object per record, structured attributes included when set."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
            'process': record.process
        }

        for key in ('context', 'performance', 'traceback'):
            value = getattr(record, key, None)
            if value:
                payload[key] = value

        # Records from plain stdlib loggers keep their exc_info
        if 'traceback' not in payload and record.exc_info:
            payload['traceback'] = self.formatException(record.exc_info)

        return json.dumps(payload, separators=(',', ':'), default=str)
