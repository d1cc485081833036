"""JSON logging for the storefront service.

Records are written as one JSON object per line with timestamp, level,
logger name, message and any ``request_id`` / ``extra`` context passed by
the caller.  Console output is always on; a rotating file handler is added
when a log file is configured.
"""

import json
import logging
import logging.handlers
import os
from datetime import datetime, timezone
from typing import Optional


class JsonFormatter(logging.Formatter):
    """Format log records as JSON strings."""

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if hasattr(record, "request_id"):
            log_record["request_id"] = getattr(record, "request_id")
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            log_record.update(extra)
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record, default=str)


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Install JSON handlers on the root logger.

    Handlers installed by an earlier call are replaced; handlers added by
    anyone else stay.

    Args:
        level: Level name for the root logger, e.g. ``"INFO"``.
        log_file: Optional path of a rotating log file.  Its directory is
            created if missing.
    """
    logger = logging.getLogger()
    logger.setLevel(level.upper())
    for handler in list(logger.handlers):
        if isinstance(handler.formatter, JsonFormatter):
            logger.removeHandler(handler)
            handler.close()

    formatter = JsonFormatter()
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
