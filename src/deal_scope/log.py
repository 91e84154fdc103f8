"""Logging setup with single-line key=value output."""

from __future__ import annotations

import logging
import os

_LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_logging(namespace: str = "deal_scope", level: str | None = None) -> logging.Logger:
    """Attach a stream handler to the package logger once and return it."""
    logger = logging.getLogger(namespace)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    logger.addHandler(handler)
    logger.setLevel(level or _LOG_LEVEL)
    logger.propagate = False
    return logger


def kv(**fields: object) -> str:
    """Render fields as ``key=value`` pairs in a stable order."""
    return " ".join(f"{k}={fields[k]}" for k in sorted(fields))
