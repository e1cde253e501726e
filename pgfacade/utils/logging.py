"""
Logging setup shared by the pgfacade CLI and library callers.

Library modules only ask for named loggers; nothing is configured on import.
`configure_logging` installs one root handler, either plain text or one JSON
object per line. Query timing records carry `sql`, `label` and
`duration_seconds` as record attributes, and the JSON output lifts them into
top-level keys so log pipelines can filter slow statements.

Usage:
    from pgfacade.utils.logging import configure_logging, get_logger

    configure_logging(level="DEBUG", json_logs=True)
    log = get_logger(__name__)
    log.info("Connection pool opened", extra={"max_size": 20})
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any, Dict, Optional

CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
CONSOLE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "extra"}


def _record_payload(record: logging.LogRecord) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    for key, value in record.__dict__.items():
        if key not in _STANDARD_ATTRS and not key.startswith("_"):
            payload[key] = value
    # a nested `extra={"extra": {...}}` mapping is flattened as well
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        payload.update(nested)
    return payload


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with `extra=` attributes as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return json.dumps(_record_payload(record), default=str)


def _dict_config(level: str, formatter: str) -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": CONSOLE_FORMAT, "datefmt": CONSOLE_DATEFMT},
            "json": {"()": JsonFormatter},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
                "level": level,
            }
        },
        "root": {"handlers": ["default"], "level": level},
    }


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    force: bool = True,
) -> None:
    """
    Install the pgfacade root handler.

    `level` is a level name such as "DEBUG". `json_logs` picks the JSON
    formatter over the text one. With `force=False` an application that has
    already configured logging keeps its handlers and only the level changes.
    """
    root = logging.getLogger()
    if not force and root.handlers:
        root.setLevel(level)
        return

    logging.config.dictConfig(_dict_config(level, "json" if json_logs else "console"))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "JsonFormatter"]
