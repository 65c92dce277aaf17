#!/usr/bin/env python3

import logging
import logging.config

from pythonjsonlogger import jsonlogger

from .env_utils import getenv_clean


def setup_logging(level: str | None = None, stream: str = "ext://sys.stdout"):
    """Configure JSON logging for the service and the CLI.

    Args:
        level: Root log level. Falls back to LOG_LEVEL, then INFO.
        stream: Handler stream; the CLI logs to stderr so stdout carries only XML
    """
    root_level = (level or getenv_clean("LOG_LEVEL", "INFO") or "INFO").upper()

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": jsonlogger.JsonFormatter,
                "format": "%(asctime)s %(name)s %(levelname)s %(message)s %(rt_id)s %(property_uri)s"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "stream": stream
            }
        },
        "loggers": {
            "": {
                "handlers": ["console"],
                "level": root_level,
                "propagate": False
            },
            "uvicorn": {
                "handlers": ["console"],
                "level": "INFO",
                "propagate": False
            },
            "httpx": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False
            }
        }
    }

    logging.config.dictConfig(logging_config)
