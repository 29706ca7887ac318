"""
Logging configuration.

Warnings and errors go to stderr. A log file, when given, receives every
record at the requested level; the converter writes its diagnostic log
next to the output file this way.

Environment variables:
- MUAVIN_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
"""
import logging
import logging.config
import os
from pathlib import Path
from typing import Optional, Union

LOG_LEVEL_ENV_VAR = "MUAVIN_LOG_LEVEL"
DEBUG_LOG_NAME = "muavin-debug.log"


def get_logging_config(log_file: Optional[Union[str, Path]] = None, level: Optional[str] = None) -> dict:
    """
    Build a dictConfig for the ``muavin`` logger.

    Args:
        log_file: Optional file receiving records at ``level``
        level: Level name; MUAVIN_LOG_LEVEL or INFO when None

    Returns:
        logging.config dict
    """
    level = (level or os.environ.get(LOG_LEVEL_ENV_VAR) or "INFO").upper()

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "verbose": {
                "format": "[{asctime}] {levelname} {name}: {message}",
                "style": "{",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "verbose",
                "level": "WARNING",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "muavin": {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
        },
    }

    if log_file is not None:
        config["handlers"]["file"] = {
            "class": "logging.FileHandler",
            "formatter": "verbose",
            "level": level,
            "filename": str(log_file),
            "mode": "w",
            "encoding": "utf-8",
        }
        config["loggers"]["muavin"]["handlers"].append("file")

    return config


def configure_logging(log_file: Optional[Union[str, Path]] = None, level: Optional[str] = "INFO") -> None:
    """Install the muavin handlers, replacing those of an earlier call."""
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(get_logging_config(log_file, level))


def shutdown_file_logging() -> None:
    """Close file handlers of the muavin logger so the log file is flushed."""
    logger = logging.getLogger("muavin")
    for handler in list(logger.handlers):
        if isinstance(handler, logging.FileHandler):
            handler.close()
            logger.removeHandler(handler)
