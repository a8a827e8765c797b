"""
Logging configuration.

- text (default): readable single-line format
- json: one JSON object per line for log aggregation
- Level from LOG_LEVEL (default INFO)
"""

import json
import logging
import sys
from datetime import datetime, timezone

_HANDLER_NAME = 'repair_tracker'


class JSONFormatter(logging.Formatter):
    """JSON log formatter for production / log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


class ReadableFormatter(logging.Formatter):
    def __init__(self):
        super().__init__('%(asctime)s %(levelname)-8s %(name)s: %(message)s', datefmt='%H:%M:%S')


def configure_logging(app):
    """Install one stream handler on the root logger. Safe to call repeatedly."""
    level_name = str(app.config.get('LOG_LEVEL', 'INFO')).upper()
    level = getattr(logging, level_name, logging.INFO)
    fmt = str(app.config.get('LOG_FORMAT', 'text')).lower()

    root = logging.getLogger()
    handler = next((h for h in root.handlers if h.get_name() == _HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        handler.set_name(_HANDLER_NAME)
        root.addHandler(handler)
    handler.setFormatter(JSONFormatter() if fmt == 'json' else ReadableFormatter())
    root.setLevel(level)
    app.logger.setLevel(level)

    # Quiet noisy libraries
    logging.getLogger('werkzeug').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('PIL').setLevel(logging.WARNING)
