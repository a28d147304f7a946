"""Logging configuration."""

from __future__ import annotations

import logging
import os
from typing import Optional

from pythonjsonlogger import jsonlogger


def configure_logging(level: str = "INFO") -> logging.Logger:
    logger = logging.getLogger("kcr")
    if logger.handlers:
        return logger

    log_level = getattr(logging, os.environ.get("LOG_LEVEL", level).upper(), logging.INFO)
    logger.setLevel(log_level)
    handler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger


def set_level(level: str) -> None:
    """Override the level of an already configured ``kcr`` logger."""
    if "LOG_LEVEL" in os.environ:
        return
    logging.getLogger("kcr").setLevel(getattr(logging, level.upper(), logging.INFO))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    base = logging.getLogger("kcr")
    if not base.handlers:
        configure_logging()
    return base if name is None else base.getChild(name)
