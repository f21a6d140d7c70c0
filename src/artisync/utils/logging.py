"""Standardized logging system.

Provides three console output modes:
- Human mode: [LEVEL] message (colored if TTY)
- Verbose mode: [LEVEL][HH:MM:SS] message
- CI/JSON mode: {"level":"...","ts":"...","msg":"..."}

Hook runs additionally append JSON lines to a rotating log file inside the
repository, since git swallows most hook output.
"""

import json
import logging
import logging.handlers
import sys
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any, TextIO

ROOT_LOGGER = "artisync"


class LogMode(Enum):
    """Logging output mode."""

    HUMAN = "human"
    VERBOSE = "verbose"
    JSON = "json"


# ANSI color codes
class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    RED = "\033[31m"
    GRAY = "\033[90m"


LEVEL_COLORS = {
    logging.DEBUG: Colors.GRAY,
    logging.INFO: Colors.GREEN,
    logging.WARNING: Colors.YELLOW,
    logging.ERROR: Colors.RED,
    logging.CRITICAL: Colors.RED,
}


def _is_tty(stream: TextIO | None = None) -> bool:
    """Check if the stream is a TTY (supports colors)."""
    if stream is None:
        stream = sys.stderr
    return hasattr(stream, "isatty") and stream.isatty()


class HumanFormatter(logging.Formatter):
    """Formatter for human-readable output.

    Format: [LEVEL] message
    """

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record."""
        level_name = record.levelname

        if self.use_colors:
            color = LEVEL_COLORS.get(record.levelno, Colors.RESET)
            return f"{color}[{level_name}]{Colors.RESET} {record.getMessage()}"
        return f"[{level_name}] {record.getMessage()}"


class VerboseFormatter(logging.Formatter):
    """Formatter for verbose output with timestamps.

    Format: [LEVEL][HH:MM:SS] message
    """

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record with timestamp."""
        level_name = record.levelname
        timestamp = datetime.now().strftime("%H:%M:%S")

        if self.use_colors:
            color = LEVEL_COLORS.get(record.levelno, Colors.RESET)
            return f"{color}[{level_name}]{Colors.RESET}[{timestamp}] {record.getMessage()}"
        return f"[{level_name}][{timestamp}] {record.getMessage()}"


class JSONFormatter(logging.Formatter):
    """Formatter for JSON lines output (machine-readable).

    Format: {"level":"INFO","ts":"2026-01-31T19:45:23Z","logger":"...","msg":"..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON."""
        log_entry: dict[str, Any] = {
            "level": record.levelname,
            "ts": datetime.now(UTC).isoformat(),
            "logger": record.name,
            "msg": record.getMessage(),
        }

        if hasattr(record, "extra_data"):
            log_entry.update(record.extra_data)

        if record.exc_info:
            log_entry["exc"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class ArtisyncLogger(logging.Logger):
    """Custom logger with structured logging support."""

    def structured(
        self,
        level: int,
        msg: str,
        **kwargs: Any,
    ) -> None:
        """Log a message with additional structured data.

        Args:
            level: Log level
            msg: Log message
            **kwargs: Additional data to include in JSON output
        """
        if not self.isEnabledFor(level):
            return
        record = self.makeRecord(
            self.name,
            level,
            "(unknown)",
            0,
            msg,
            (),
            None,
        )
        if kwargs:
            record.extra_data = kwargs  # type: ignore[attr-defined]
        self.handle(record)


logging.setLoggerClass(ArtisyncLogger)


def get_logger(name: str = ROOT_LOGGER) -> ArtisyncLogger:
    """Get an Artisync logger instance.

    Args:
        name: Logger name

    Returns:
        ArtisyncLogger instance
    """
    return logging.getLogger(name)  # type: ignore[return-value]


def structured(logger: logging.Logger, level: int, msg: str, **kwargs: Any) -> None:
    """Log with structured data on any logger.

    Module-level loggers created before the logger class was installed are plain
    `logging.Logger` instances; this falls back to `extra` for them.
    """
    if isinstance(logger, ArtisyncLogger):
        logger.structured(level, msg, **kwargs)
    else:
        logger.log(level, msg, extra={"extra_data": kwargs})


def setup_logging(
    mode: LogMode = LogMode.HUMAN,
    level: int = logging.INFO,
    stream: TextIO | None = None,
) -> None:
    """Configure console logging with the specified mode.

    Hooks write to stderr so git shows the output without mixing it into
    anything a caller may parse from stdout.

    Args:
        mode: Output mode (human, verbose, json)
        level: Minimum log level
        stream: Output stream (default: stderr)
    """
    logger = logging.getLogger(ROOT_LOGGER)

    for handler in list(logger.handlers):
        if not isinstance(handler, logging.handlers.RotatingFileHandler):
            logger.removeHandler(handler)

    use_colors = _is_tty(stream)

    if mode == LogMode.JSON:
        formatter: logging.Formatter = JSONFormatter()
    elif mode == LogMode.VERBOSE:
        formatter = VerboseFormatter(use_colors=use_colors)
    else:
        formatter = HumanFormatter(use_colors=use_colors)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    logger.addHandler(handler)
    # Handlers filter by level; the logger itself lets everything through
    logger.setLevel(logging.DEBUG)


def add_file_logging(
    path: Path,
    max_bytes: int = 1_048_576,
    backup_count: int = 3,
    level: int = logging.DEBUG,
) -> logging.Handler:
    """Append JSON lines to a rotating log file.

    Args:
        path: Log file path (parent directories are created)
        max_bytes: Rotate when the file exceeds this size
        backup_count: Number of rotated files to keep
        level: Minimum level written to the file

    Returns:
        The installed handler
    """
    logger = logging.getLogger(ROOT_LOGGER)

    for existing in list(logger.handlers):
        if isinstance(existing, logging.handlers.RotatingFileHandler):
            logger.removeHandler(existing)
            existing.close()

    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(JSONFormatter())
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    return handler


def configure_from_cli(
    verbose: bool = False,
    quiet: bool = False,
    ci: bool = False,
) -> None:
    """Configure logging based on CLI flags.

    Args:
        verbose: Enable verbose mode with timestamps
        quiet: Suppress info messages (warnings and errors only)
        ci: Enable JSON output for CI/CD
    """
    if ci:
        mode = LogMode.JSON
    elif verbose:
        mode = LogMode.VERBOSE
    else:
        mode = LogMode.HUMAN

    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    setup_logging(mode=mode, level=level)
