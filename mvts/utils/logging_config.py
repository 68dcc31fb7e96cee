"""Logging configuration for mvts.

The library only creates module loggers under the ``mvts`` namespace;
nothing is configured on import. Applications call ``setup_logging`` to
attach handlers.
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

PACKAGE_LOGGER = "mvts"


class JSONFormatter(logging.Formatter):
    """Format records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "funcName": record.funcName,
            "lineNo": record.lineno,
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        # structured fields passed as extra={"props": {...}}
        if hasattr(record, "props"):
            log_obj.update(record.props)

        return json.dumps(log_obj, default=str)


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[str] = None,
    logger_name: str = PACKAGE_LOGGER,
) -> logging.Logger:
    """
    Attach console and optional JSON-lines handlers to a logger.

    Args:
        log_level: Logging level name (DEBUG, INFO, ...)
        log_dir: Directory for ``app.jsonl`` and ``errors.jsonl``; no file
            handlers are added when None
        logger_name: Logger to configure, the package logger by default

    Returns:
        The configured logger
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)

    # Replace handlers from a previous call
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    )
    logger.addHandler(console_handler)

    if log_dir is not None:
        Path(log_dir).mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(Path(log_dir) / "app.jsonl")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)

        error_handler = logging.FileHandler(Path(log_dir) / "errors.jsonl")
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(JSONFormatter())
        logger.addHandler(error_handler)

    logger.info(f"Logging configured with level {log_level}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
