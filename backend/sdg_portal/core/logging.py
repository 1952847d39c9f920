"""Logging setup: JSON lines in production, plain text everywhere else."""
import logging
import sys

from pythonjsonlogger import jsonlogger

from sdg_portal.core.config import settings

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# httpx logs every request at INFO; a CSV import issues one per row.
QUIET_LOGGERS = ("httpx", "httpcore")


def setup_logging() -> None:
    level = getattr(logging, settings.LOG_LEVEL.strip().upper(), logging.INFO)

    if settings.APP_ENV == "production":
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            jsonlogger.JsonFormatter(
                "%(asctime)s %(name)s %(levelname)s %(message)s",
                rename_fields={"asctime": "timestamp", "levelname": "level"},
                static_fields={"service": "sdg-portal", "env": settings.APP_ENV},
            )
        )
        logging.root.handlers = [handler]
        logging.root.setLevel(level)
    else:
        logging.basicConfig(level=level, format=TEXT_FORMAT)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
