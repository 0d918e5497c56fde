"""Application-wide logging initialization

Call `initialize_logging()` once at process start (the FastAPI factory does it
when nothing else configured the root logger). Every other module just does
`logging.getLogger(__name__)`.

Logging format:
    2025-01-01 12:00:00,000 INFO url_shortener.manager.shortener_engine: URL shortened ...
"""

import logging
import logging.config
from typing import Optional

from url_shortener.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def initialize_logging(level: Optional[str] = None) -> None:
    log_level = (level or settings.LOG_LEVEL or "INFO").upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {
                    "format": LOG_FORMAT,
                }
            },
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "formatter": "plain",
                    "stream": "ext://sys.stdout",
                }
            },
            "root": {
                "level": log_level,
                "handlers": ["stdout"],
            },
        }
    )
