"""Logging setup for runners and services.

Plain text by default; one JSON object per line when ``log_json`` is set.
Analysis and comparison runs attach ``brand_id``/``run_id``/``provider`` via
``extra=`` so JSON logs can be filtered per brand.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from visibility_tracker.core.config import settings

PLAIN_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
PLAIN_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Record attributes copied into JSON output when a call site sets them
CONTEXT_FIELDS = ("brand_id", "run_id", "provider")

# Third-party loggers held at WARNING
QUIET_LOGGERS = ("httpx", "httpcore")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, timestamped with the record's creation time."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def build_formatter(json_output: bool) -> logging.Formatter:
    if json_output:
        return JSONFormatter()
    return logging.Formatter(PLAIN_FORMAT, datefmt=PLAIN_DATEFMT)


def setup_logging(level_name: str | None = None, json_output: bool | None = None) -> None:
    """Route all logging to stdout through a single handler.

    Arguments override ``settings.log_level`` / ``settings.log_json``.
    Calling it again replaces the previous handler.
    """
    level = logging.getLevelName((level_name or settings.log_level).upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(build_formatter(settings.log_json if json_output is None else json_output))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
