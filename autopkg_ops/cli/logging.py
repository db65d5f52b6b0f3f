"""CLI logging configuration with file output.

Provides a shared ``configure_cli_logging`` function that sets up file,
console and (optionally) system log output for CLI commands. Unlike
long-running services, every command here starts its log file empty, so
the file always describes the most recent run:

    <log_dir>/autopkg_pkg_cleaner.log          # cleanup pkgs
    <log_dir>/jamf_advanced_search_api.log     # searches sync
    /usr/local/autopkg/Logs/advanced_computer_search.log   # ea check

Usage from any CLI command::

    from autopkg_ops.cli.logging import configure_cli_logging

    configure_cli_logging("cleanup", log_file=path, verbose=verbose)
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import SysLogHandler
from pathlib import Path
from typing import TextIO

from autopkg_ops.core.timestamps import status_timestamp

ROOT_LOGGER = "autopkg_ops"

# macOS first, then Linux
SYSLOG_SOCKETS = (Path("/var/run/syslog"), Path("/dev/log"))


class StatusTimestampFormatter(logging.Formatter):
    """Prefix messages with the Jamf-safe timestamp: ``03-07-2025 9:05PM - msg``."""

    def format(self, record: logging.LogRecord) -> str:
        return f"{status_timestamp()} - {record.getMessage()}"


def _plain_formatter() -> logging.Formatter:
    return logging.Formatter("%(message)s")


def _syslog_handler(tag: str) -> SysLogHandler | None:
    for socket_path in SYSLOG_SOCKETS:
        if socket_path.exists():
            try:
                handler = SysLogHandler(address=str(socket_path))
            except OSError:
                continue
            handler.setFormatter(logging.Formatter(f"{tag}: %(message)s"))
            return handler
    return None


def reset_cli_logging() -> None:
    """Remove and close handlers added by configure_cli_logging."""
    root_logger = logging.getLogger(ROOT_LOGGER)
    for handler in root_logger.handlers[:]:
        if getattr(handler, "_autopkg_ops", False):
            root_logger.removeHandler(handler)
            handler.close()


def configure_cli_logging(
    command: str,
    *,
    log_file: Path | None = None,
    verbose: bool = False,
    timestamped: bool = False,
    console: bool = True,
    stream: TextIO | None = None,
    syslog_tag: str | None = None,
) -> Path | None:
    """Configure logging for a CLI command.

    Sets up:
    - File handler: truncated at start, INFO level (DEBUG if verbose)
    - Console handler: same lines on stdout (or ``stream``)
    - Syslog handler: when ``syslog_tag`` is given and a socket exists

    Args:
        command: CLI command name (e.g., "cleanup", "ea")
        log_file: Log file path, created with its parent directory
        verbose: If True, include DEBUG messages
        timestamped: Prefix every line with the status timestamp
        console: Echo log lines to the terminal
        stream: Console stream, stdout when not given
        syslog_tag: Tag for system log entries

    Returns:
        Path to the log file, None when logging to file is disabled
    """
    level = logging.DEBUG if verbose else logging.INFO
    formatter = StatusTimestampFormatter() if timestamped else _plain_formatter()
    root_logger = logging.getLogger(ROOT_LOGGER)

    # Remove handlers from a previous call to avoid duplicates
    reset_cli_logging()

    handlers: list[logging.Handler] = []

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if console:
        console_handler = logging.StreamHandler(stream or sys.stdout)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    if syslog_tag:
        syslog_handler = _syslog_handler(syslog_tag)
        if syslog_handler is not None:
            syslog_handler.setLevel(logging.INFO)
            handlers.append(syslog_handler)

    for handler in handlers:
        handler._autopkg_ops = True  # type: ignore[attr-defined]
        if handler.level == logging.NOTSET:
            handler.setLevel(level)
        root_logger.addHandler(handler)

    root_logger.setLevel(level)
    logging.getLogger(__name__).debug(f"Logging configured for {command}")
    return log_file
