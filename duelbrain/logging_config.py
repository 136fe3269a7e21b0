"""Logging setup shared by the server, scripts and examples."""

from __future__ import annotations

import logging
import os
from typing import Iterable, Optional

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(
    level: Optional[str] = None,
    include_uvicorn: bool = True,
    extra_loggers: Optional[Iterable[str]] = None,
) -> logging.Logger:
    """Configure root logging and return the ``duelbrain`` logger.

    The level falls back to ``RPS_LOG_LEVEL`` and then INFO.
    """
    raw_level = level if level is not None else os.getenv("RPS_LOG_LEVEL")
    resolved_level = (raw_level or "INFO").upper()
    logging.basicConfig(level=resolved_level, format=DEFAULT_FORMAT, datefmt=DEFAULT_DATEFMT)

    app_logger = logging.getLogger("duelbrain")
    app_logger.setLevel(resolved_level)

    if include_uvicorn:
        for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
            logging.getLogger(name).setLevel(resolved_level)

    for name in extra_loggers or ():
        logging.getLogger(name).setLevel(resolved_level)

    app_logger.debug("Logging configured at %s", resolved_level)
    return app_logger
