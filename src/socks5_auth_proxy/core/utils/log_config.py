"""Logging configuration for the proxy server.

This module provides centralized logging configuration using Loguru.
It sets up logging to the console and, optionally, to a rotating log file.
Connections receive the configured ``logger`` as their log sink.
"""

import sys
from pathlib import Path

from loguru import logger

# Default location for the optional log file
LOG_DIR = Path.home() / ".socks5-auth-proxy" / "logs"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def configure_logging(level: str = "INFO", log_file: Path | None = None) -> None:
    """Replace loguru's default handler with the proxy's handlers.

    Args:
        level: Minimum level for the console handler
        log_file: Optional file to also log to, rotated at 10 MB
    """
    logger.remove()  # Remove default handler

    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=level,
        backtrace=True,
        diagnose=False,
    )

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            rotation="10 MB",
            retention="1 week",
            compression="zip",
            format=FILE_FORMAT,
            level="DEBUG",
            backtrace=True,
            diagnose=False,
        )


__all__ = ["configure_logging", "logger", "LOG_DIR"]
