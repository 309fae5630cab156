"""Centralized logging configuration."""

import logging
from typing import Optional

from config import settings

# Chatty at INFO: SQL echo, HTTP client internals, yfinance and its peewee cache
QUIET_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "httpx",
    "httpcore",
    "urllib3",
    "yfinance",
    "peewee",
    "multipart",
)


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger for the API process.

    The level comes from ``settings.LOG_LEVEL`` unless given explicitly.
    Production logs carry the full date, since they outlive a single day;
    local runs only show the time.
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    datefmt = "%Y-%m-%d %H:%M:%S" if settings.ENVIRONMENT == "production" else "%H:%M:%S"
    logging.basicConfig(
        format="%(asctime)s %(levelname)-8s %(name)s  %(message)s",
        datefmt=datefmt,
        level=getattr(logging, level_name),
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
