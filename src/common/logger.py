"""Logging utilities with rich console output.

All modules share one rich console so log lines and CLI status messages
interleave cleanly.

Usage:
    from common.logger import get_logger

    logger = get_logger(__name__)
    logger.debug("Cache miss for book/show")
    logger.warning("Discarding corrupt cache entry")
"""

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .env import env

# Global console instances for consistent output
console = Console()
error_console = Console(stderr=True)


def _rich_handler(show_time: bool = False, show_path: bool = False) -> RichHandler:
    handler = RichHandler(
        console=error_console,
        show_time=show_time,
        show_path=show_path,
        rich_tracebacks=True,
        markup=False,  # URLs and response bodies contain brackets
    )
    handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="[%X]"))
    return handler


def get_logger(
    name: str,
    level: str | None = None,
    show_time: bool = False,
    show_path: bool = False,
) -> logging.Logger:
    """Get a configured logger with rich output.

    Args:
        name: Logger name (typically __name__ of the module)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               If None, uses environment variable LOG_LEVEL or defaults to INFO.
        show_time: Show timestamp in log output (default: False for clean CLI)
        show_path: Show file path in log output (default: False for clean CLI)

    Returns:
        Configured logger instance

    Example:
        >>> logger = get_logger(__name__, level="DEBUG")
        >>> logger.debug("Fetching https://www.goodreads.com/book/show?id=1")
    """
    logger = logging.getLogger(name)

    # Avoid adding multiple handlers if logger already configured
    if logger.handlers:
        return logger

    logger.setLevel((level or env.log_level()).upper())
    logger.addHandler(_rich_handler(show_time=show_time, show_path=show_path))

    # Propagate so pytest caplog can capture records
    logger.propagate = True

    return logger


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Setup logging configuration for the entire application.

    This should be called once at the application entry point (CLI).
    LOG_LEVEL in the environment overrides ``level``.

    Args:
        level: Default logging level for all modules
        log_file: Optional file path to also log to a file
    """
    import os

    level = os.getenv("LOG_LEVEL", level).upper()

    # Module loggers carry their own rich handler; only their level needs aligning
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for name, existing in logging.root.manager.loggerDict.items():
        if isinstance(existing, logging.Logger) and name.split(".")[0] in ("goodreads", "common"):
            existing.setLevel(level)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(file_handler)


def success(message: str) -> None:
    """Print a success message with a green checkmark.

    Example:
        >>> success("Removed 3 expired cache entries")
        ✓ Removed 3 expired cache entries
    """
    console.print(f"[green]✓[/green] {escape(message)}", highlight=False)


def error(message: str) -> None:
    """Print an error message with a red X icon to stderr.

    Example:
        >>> error("Cache directory not writable: cache")
        ✗ Cache directory not writable: cache
    """
    error_console.print(f"[red]✗[/red] {escape(message)}", highlight=False)
