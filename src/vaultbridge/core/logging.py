"""
Logging for vaultbridge.

Every module logs through a child of the ``vaultbridge`` logger. Function
runtimes collect stdout, so output goes there either as plain text lines or
as one JSON object per line for log aggregators.
"""

import json
import logging
import sys
from datetime import datetime, timezone

LOGGER_NAME = "vaultbridge"
LOG_FORMATS = ("text", "json")

TEXT_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s] %(message)s"


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record.

    Fields: ``time`` (ISO 8601, milliseconds), ``level``, ``logger``,
    ``message`` and, when present, ``exception``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def configure_logging(level: int | str = logging.INFO, fmt: str = "text") -> logging.Logger:
    """
    (Re)configure the vaultbridge logger.

    Args:
        level: Logging level, e.g. ``logging.INFO`` or ``"debug"``
        fmt: ``"text"`` or ``"json"``

    Raises:
        ValueError: If the level or format is unknown
    """
    if isinstance(level, str):
        level = level.upper()
    if fmt not in LOG_FORMATS:
        raise ValueError(f"Unknown log format: {fmt!r}")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Invocations may share a process; replace rather than stack handlers
    logger.handlers.clear()
    handler = logging.StreamHandler(sys.stdout)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a child logger of vaultbridge."""
    if name:
        return logging.getLogger(f"{LOGGER_NAME}.{name}")
    return logging.getLogger(LOGGER_NAME)
