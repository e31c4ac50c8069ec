"""Logging configuration.

Records carry the service name, environment and PID so output from the API
workers and the seeding scripts can be told apart once aggregated.
"""

import logging
import sys
from typing import Optional

from pythonjsonlogger import jsonlogger

from marketplace.config import get_settings

settings = get_settings()

JSON_FIELDS = "%(asctime)s %(name)s %(levelname)s %(process)d %(message)s"
TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [PID:%(process)d] - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
QUIET_LOGGERS = ("uvicorn.access", "motor", "pymongo", "httpx")


def build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return jsonlogger.JsonFormatter(
            JSON_FIELDS,
            datefmt=DATE_FORMAT,
            rename_fields={"levelname": "level", "process": "pid"},
            static_fields={"service": settings.app_name, "environment": settings.environment},
        )
    return logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Install one stdout handler on the root logger; defaults come from settings."""
    level_name = (level or settings.log_level).upper()
    log_format = log_format or settings.log_format
    log_level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(build_formatter(log_format))
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info("Logging configured: level=%s, format=%s", level_name, log_format)
