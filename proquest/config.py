"""
Configuration - Environment driven settings and logging setup.

All values can be overridden with environment variables:
    PROQUEST_ENV              development | production
    PROQUEST_DATA_DIR         Directory holding per-user progress snapshots
    PROQUEST_LOG_LEVEL        Root log level for the proquest logger
    ALLOWED_ORIGINS           Comma separated CORS origins for the API
    PROQUEST_OPPONENT_DELAY   Seconds before the grid opponent answers
    PROQUEST_RESOLVE_DELAY    Seconds before a flipped pair is resolved
"""

from __future__ import annotations
import logging
import os
from pathlib import Path

PROQUEST_ENV = os.getenv("PROQUEST_ENV", "development")
PROQUEST_DATA_DIR = Path(
    os.getenv("PROQUEST_DATA_DIR", str(Path.home() / ".proquest" / "users"))
).expanduser()
PROQUEST_LOG_LEVEL = os.getenv("PROQUEST_LOG_LEVEL", "INFO")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

OPPONENT_DELAY = float(os.getenv("PROQUEST_OPPONENT_DELAY", "0.5"))
RESOLVE_DELAY = float(os.getenv("PROQUEST_RESOLVE_DELAY", "1.0"))

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """
    Configure the ``proquest`` logger hierarchy.

    Safe to call more than once: the handler is only attached the first time.
    """
    logger = logging.getLogger("proquest")
    logger.setLevel(level or PROQUEST_LOG_LEVEL)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    return logger
