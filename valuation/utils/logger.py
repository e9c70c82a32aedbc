#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Logging module: one stream handler per valuation logger, level and format
taken from the environment (see config.LOG_LEVEL / config.LOG_FORMAT).
"""

import logging
from typing import Optional, Union

from .config import LOG_LEVEL, LOG_FORMAT


def _resolve_level(level: Union[str, int, None]) -> int:
    if level is None:
        level = LOG_LEVEL
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.INFO)


def get_logger(name: str, level: Optional[Union[str, int]] = None) -> logging.Logger:
    """
    Get a configured logger instance for a module.

    Args:
        name: Module name (typically __name__)
        level: Optional override of the configured LOG_LEVEL

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Only add handler if not already present (avoid duplicates)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        # Handler attached here; don't print twice through the root logger
        logger.propagate = False

    logger.setLevel(_resolve_level(level))
    return logger
