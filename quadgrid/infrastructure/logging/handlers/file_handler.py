"""Size-rotated log file handler."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from ..formatters import JsonFormatter

_PLAIN_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class FileHandler(RotatingFileHandler):
    """Rotating handler that creates its directory and writes JSON lines unless ``use_json`` is off."""

    def __init__(self,
                 filename: str,
                 max_bytes: int = 10 * 1024 * 1024,
                 backup_count: int = 3,
                 encoding: str = 'utf-8',
                 use_json: bool = True):
        path = Path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)

        super().__init__(str(path), maxBytes=max_bytes, backupCount=backup_count, encoding=encoding)
        self.setLevel(logging.DEBUG)
        self.setFormatter(JsonFormatter() if use_json else logging.Formatter(_PLAIN_FORMAT))
