"""
Application-wide logging configuration helpers.

All modules share one configuration: human-readable lines on stdout plus an
append-only diagnostics file that receives field parse failures, insert
failures and worker progress markers.
"""
from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Optional


_is_configured = False


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Configure root and application loggers if they have not been configured yet.

    Args:
        level: Optional log level override (e.g., "DEBUG", "INFO").
        log_file: Path of the append-only diagnostics log. When omitted only
            the console handler is installed.

    Raises:
        ValueError: If the log file cannot be opened. Callers treat this as
            fatal and let the process exit.
    """
    global _is_configured

    if _is_configured:
        return

    log_level = (level or "INFO").upper()

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "level": log_level,
        }
    }
    if log_file:
        handlers["diagnostics_file"] = {
            "class": "logging.FileHandler",
            "formatter": "standard",
            "level": "DEBUG",
            "filename": log_file,
            "mode": "a",
            "encoding": "utf8",
        }

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                }
            },
            "handlers": handlers,
            "root": {
                "handlers": list(handlers),
                "level": log_level,
            },
        }
    )

    # Ensure our application namespace inherits the same level while still
    # propagating to the root logger for handler reuse.
    logging.getLogger("cashback_ingest").setLevel(log_level)

    _is_configured = True
