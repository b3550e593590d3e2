"""
Logging Configuration for the meta-agent-search engine.

Provides centralized logging control with easily toggleable levels:
- DEBUG: Full diagnostic output (every archive write, every refinement round)
- INFO: Key events only (generations, evaluations, discoveries, retirements)
- WARNING+: Errors and warnings only (production mode)

Usage:
    from meta_search.logging_config import setup_logging, set_debug_mode

    # In the host application:
    setup_logging(debug=False)

    # To enable debug temporarily:
    set_debug_mode(True)
"""

import logging
from typing import Optional

# Every module logger (meta_search.*) propagates to this one
PACKAGE_LOGGER = "meta_search"

# Subpackages whose chatter is mostly HTTP retries
ORACLE_LOGGERS = ("meta_search.llm", "meta_search.agents")

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
DATE_FORMAT = '%H:%M:%S'


def setup_logging(debug: bool = False, log_file: Optional[str] = None):
    """
    Setup logging configuration.

    Args:
        debug: If True, set DEBUG level. Otherwise INFO level.
        log_file: Optional file path to write logs to.
    """
    level = logging.DEBUG if debug else logging.INFO

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    set_logging_level(level)


def set_debug_mode(enabled: bool):
    """Switch all package loggers between DEBUG and INFO."""
    set_logging_level(logging.DEBUG if enabled else logging.INFO)


def set_logging_level(level: int):
    """
    Set logging level for all package components.

    Args:
        level: logging.DEBUG, logging.INFO, logging.WARNING, etc.
    """
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
    for name in ORACLE_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)


def silence_oracle_logging():
    """Only errors from the HTTP client and agents (noisy retries otherwise)."""
    for name in ORACLE_LOGGERS:
        logging.getLogger(name).setLevel(logging.ERROR)
