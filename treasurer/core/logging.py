import logging
from logging.config import dictConfig
from typing import Literal

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]
LogFormat = Literal["text", "json"]

JSON_FORMATTER_CLASS = "pythonjsonlogger.json.JsonFormatter"


def configure_logging(level: LogLevel = "INFO", fmt: LogFormat = "text") -> None:
    """Configure console logging across the app."""
    formatters = {
        "default": {
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        },
        "json": {
            "class": JSON_FORMATTER_CLASS,
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    }

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": formatters,
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if fmt == "json" else "default",
                }
            },
            "root": {"handlers": ["console"], "level": level.upper()},
        }
    )

    # uvicorn propagates to the root handler instead of printing twice.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers = []
