"""
Rich-based logging system
"""
import sys
import logging
from datetime import datetime
from typing import Optional
from pathlib import Path

from rich.logging import RichHandler
from rich.console import Console
from rich.markup import escape
from rich.traceback import install as install_traceback


# Global console instances
_stdout_console = Console(file=sys.stdout)
_stderr_console = Console(file=sys.stderr)

# Install rich traceback handler
install_traceback(show_locals=False, width=120)

# Activity actions rendered in red
FAILURE_ACTIONS = ("Error", "Upload Failed", "Delete Failed")

_activity_logger = logging.getLogger("themesync.activity")


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    rich_tracebacks: bool = True,
) -> None:
    """
    Setup Rich logging system.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
        rich_tracebacks: Enable rich tracebacks
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers
    root_logger.handlers.clear()

    # Create Rich handler for stderr
    rich_handler = RichHandler(
        console=_stderr_console,
        show_time=True,
        show_path=True,
        rich_tracebacks=rich_tracebacks,
        markup=False,
        show_level=True,
    )
    rich_handler.setLevel(log_level)
    root_logger.addHandler(rich_handler)

    # Add file handler if specified
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(log_level)
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    # Activity lines are printed on the console already
    _activity_logger.propagate = False
    if log_file:
        _activity_logger.handlers = [file_handler]


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def get_stdout_console() -> Console:
    """Get stdout console for user-facing output"""
    return _stdout_console


def get_stderr_console() -> Console:
    """Get stderr console for errors and logs"""
    return _stderr_console


def log_activity(action: str, target: object = "") -> None:
    """
    Print a developer-facing activity line.

    Format: ``[12:35:20] - Uploaded -- assets/main.min.js``

    Args:
        action: Activity label, e.g. "Uploaded", "Deleted", "Upload Failed"
        target: Remote key, file name or failure reason
    """
    stamp = datetime.now().strftime("%H:%M:%S")
    style = "bold red" if action in FAILURE_ACTIONS else "bold green"
    separator = " --" if action == "Deleted" else "--"
    _stdout_console.print(
        f"[grey50][[/grey50][dim cyan]{stamp}[/dim cyan][grey50]][/grey50] - "
        f"[{style}]{escape(action)}[/{style}] {separator} [italic]{escape(str(target))}[/italic]",
        highlight=False,
    )
    if action in FAILURE_ACTIONS:
        _activity_logger.error("%s -- %s", action, target)
    else:
        _activity_logger.info("%s -- %s", action, target)
