"""
Logging utilities for dockhttp.

This module provides logging configuration and the wire-trace helper used by
the HTTP/1.1 protocol engine.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = 'dockhttp'

_LOG_FORMAT = '%(asctime)s - %(name)s - %(filename)s:%(lineno)d - %(levelname)s - %(message)s'
_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    verbose: bool = False,
) -> logging.Logger:
    """Set up logging for the application.

    Args:
        level: Logging level (e.g., logging.INFO, logging.DEBUG)
        log_file: Optional file path to write logs to
        verbose: Whether to enable verbose logging

    Returns:
        Configured logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else level)

    # Remove existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console = Console(stderr=True)
    console_handler = RichHandler(
        console=console,
        show_path=True,
        show_time=True,
        markup=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(logging.DEBUG if verbose else level)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)

    return logger


def get_logger() -> logging.Logger:
    """Get the application logger.

    Returns:
        Application logger
    """
    return logging.getLogger(LOGGER_NAME)


def trace_line(
    logger: logging.Logger,
    outbound: bool,
    line: str,
) -> None:
    """Echo one protocol line.

    Callers only invoke this when their exchange has debug enabled.

    Args:
        logger: Logger to use
        outbound: True for lines written to the daemon, False for lines read
        line: The line without its CRLF terminator
    """
    logger.debug("%s %s", '>' if outbound else '<', line)


def trace_body(
    logger: logging.Logger,
    outbound: bool,
    size: Optional[int],
    chunked: bool,
) -> None:
    """Echo a summary of a body instead of its bytes."""
    if chunked:
        logger.debug("%s <chunked body>", '>' if outbound else '<')
    elif size is not None:
        logger.debug("%s <body: %d bytes>", '>' if outbound else '<', size)
