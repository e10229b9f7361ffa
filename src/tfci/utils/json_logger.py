"""
Logging setup for tfci.

The level and format come from the environment so they can be set from a
workflow file without touching the action inputs:

    TF_LOG         DEBUG | INFO | WARN | ERROR | OFF   (default INFO)
    TF_LOG_FORMAT  CONSOLE | JSON                      (default CONSOLE)

Logs always go to stderr; stdout is reserved for command results.
"""

import json
import logging
import os
import sys
import time
from typing import Any, Dict, Mapping, Optional

from rich.console import Console
from rich.logging import RichHandler

ENV_LOG_LEVEL = "TF_LOG"
ENV_LOG_FORMAT = "TF_LOG_FORMAT"

VALID_LEVELS = ["DEBUG", "INFO", "WARN", "WARNING", "ERROR", "OFF"]
VALID_FORMATS = ["JSON", "CONSOLE"]

# above CRITICAL so nothing is emitted
LEVEL_OFF = logging.CRITICAL + 10

# attributes every LogRecord has; anything else was passed through ``extra``
_RESERVED = set(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "platform"}


def parse_log_level(level: Optional[str]) -> int:
    """Convert a TF_LOG value to a logging level, defaulting to INFO."""
    return {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARN": logging.WARNING,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "OFF": LEVEL_OFF,
    }.get((level or "").strip().upper(), logging.INFO)


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED}


class PlatformFilter(logging.Filter):
    """Stamps every record with the CI platform name."""

    def __init__(self, platform: str):
        super().__init__()
        self.platform = platform

    def filter(self, record: logging.LogRecord) -> bool:
        record.platform = self.platform
        return True


class JsonFormatter(logging.Formatter):
    """Custom formatter that outputs logs as structured JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": int(time.time() * 1000),
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
            "caller": f"{record.module}:{record.lineno}",
            "platform": getattr(record, "platform", ""),
        }
        payload.update(_extra_fields(record))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Appends structured extra fields as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        fields = _extra_fields(record)
        if fields:
            message += " " + " ".join(f"{k}={v}" for k, v in fields.items())
        return message


def configure_logging(
    platform: str = "",
    environ: Optional[Mapping[str, str]] = None,
    stream=None,
) -> logging.Logger:
    """Configure the root logger from TF_LOG / TF_LOG_FORMAT."""
    environ = os.environ if environ is None else environ
    level_name = environ.get(ENV_LOG_LEVEL) or "INFO"
    level = parse_log_level(level_name)
    log_format = (environ.get(ENV_LOG_FORMAT) or "CONSOLE").upper()
    stream = stream or sys.stderr

    if log_format == "JSON":
        handler: logging.Handler = logging.StreamHandler(stream)
        handler.setFormatter(JsonFormatter())
    else:
        handler = RichHandler(
            console=Console(file=stream),
            show_path=False,
            rich_tracebacks=False,
            log_time_format="%H:%M:%S",
        )
        handler.setFormatter(ConsoleFormatter("%(message)s"))
    handler.addFilter(PlatformFilter(platform))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)

    if level_name.strip().upper() not in VALID_LEVELS:
        root_logger.warning(
            "Unknown %s value %r, using INFO", ENV_LOG_LEVEL, level_name
        )
    if log_format not in VALID_FORMATS:
        root_logger.warning(
            "Unknown %s value %r, using CONSOLE", ENV_LOG_FORMAT, log_format
        )

    root_logger.debug(
        "Logger initialized",
        extra={"log_level": level_name, "log_format": log_format},
    )
    return root_logger
