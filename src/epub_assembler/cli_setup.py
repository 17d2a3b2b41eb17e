#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# HERE IS THE CHANGELOG FOR THIS VERSION OF THE CODE:
# - Logging is configured from command-line options instead of the
#   application config file
# - Removed iCloud, colorama, signal and configuration preset setup
#

"""
cli_setup.py - CLI setup and initialization
==========================================

Handles logging setup for the epub-assemble command.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "WARNING", log_file: str | None = None) -> logging.Logger:
    """Set up logging.

    Args:
        level: Level name, e.g. "INFO"
        log_file: Optional file that receives the same records

    Returns:
        Configured logger instance
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    logging.basicConfig(level=log_level, format=LOG_FORMAT)
    logger = logging.getLogger("epub_assembler")
    logger.setLevel(log_level)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(file_handler)
        except OSError as e:
            logger.error(f"Failed to set up file logging to {log_file}: {e}")
            # Continue without file logging

    return logger

