"""Logging utilities for devstack-net."""

import logging
import sys

from pythonjsonlogger import jsonlogger

# Chatty third-party loggers that would drown the orchestrator output at DEBUG
NOISY_LOGGERS = ("docker", "urllib3")


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    instance: str | None = None,
) -> None:
    """
    Configure the root logger for the orchestrator.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Format type (json or text)
        instance: Platform instance name, attached to every JSON record
    """
    level = getattr(logging, log_level.upper())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if log_format.lower() == "json":
        static_fields = {"instance": instance} if instance else {}
        formatter = jsonlogger.JsonFormatter(
            "%(timestamp)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level"},
            static_fields=static_fields,
            timestamp=True,
        )
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s")

    handler.setFormatter(formatter)
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the given name (typically __name__)."""
    return logging.getLogger(name)
