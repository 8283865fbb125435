"""
Logging Configuration Module.

All pipeline modules log under the ``docextract`` namespace logger. The
console handler writes to stderr, so the CLI can print JSON results on
stdout; an optional rotating file handler mirrors every record.

Usage:
    from docextract.utils.logger import setup_logger_from_config, get_logger

    # Initialize logging (call once at startup)
    setup_logger_from_config()

    # Get logger in any module
    logger = get_logger(__name__)
    logger.info("walmart.pdf: extracting")
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import IO, Optional, Union

import colorama
from colorama import Fore, Style

colorama.init()

# Namespace shared by every logger in the package
LOGGER_NAMESPACE = "docextract"

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """
    Console formatter that colors the level name of each record.

    Colors:
        - DEBUG: Cyan
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Red (bold)
    """

    LEVEL_COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno)
        if color is None:
            return super().format(record)

        # Format a copy so other handlers see the plain level name
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname:<8}{Style.RESET_ALL}"
        return super().format(colored)


def parse_level(level: Union[str, int]) -> int:
    """
    Convert a level name or number to a logging level.

    Raises:
        ValueError: If the name is not a standard logging level.

    Example:
        >>> parse_level("debug")
        10
    """
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown logging level: {level}")
    return value


def _console_handler(
    level: int,
    formatter: logging.Formatter,
    stream: Optional[IO[str]]
) -> logging.Handler:
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _file_handler(
    log_file: str,
    level: int,
    formatter: logging.Formatter,
    max_bytes: int,
    backup_count: int
) -> logging.Handler:
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logger(
    level: Union[str, int] = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    log_file: Optional[str] = None,
    max_bytes: int = 10485760,  # 10 MB
    backup_count: int = 5,
    colorize: bool = True,
    stream: Optional[IO[str]] = None
) -> logging.Logger:
    """
    Configure the ``docextract`` namespace logger.

    Calling this again replaces the previous handlers.

    Args:
        level: Logging level name or number.
        log_format: Record format, defaults to DEFAULT_FORMAT.
        date_format: Timestamp format, defaults to DEFAULT_DATE_FORMAT.
        log_file: Path of a rotating log file; None disables file logging.
        max_bytes: Size at which the log file rotates.
        backup_count: Rotated files to keep.
        colorize: Color the level names on the console.
        stream: Console stream, stderr by default.

    Returns:
        The configured namespace logger.

    Example:
        >>> setup_logger(level="DEBUG", log_file="logs/docextract.log")
    """
    numeric_level = parse_level(level)
    log_format = log_format or DEFAULT_FORMAT
    date_format = date_format or DEFAULT_DATE_FORMAT

    formatter_class = ColoredFormatter if colorize else logging.Formatter

    namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
    namespace_logger.setLevel(numeric_level)
    namespace_logger.handlers.clear()
    namespace_logger.addHandler(_console_handler(
        numeric_level, formatter_class(log_format, datefmt=date_format), stream
    ))

    if log_file:
        namespace_logger.addHandler(_file_handler(
            log_file,
            numeric_level,
            logging.Formatter(log_format, datefmt=date_format),
            max_bytes,
            backup_count
        ))

    namespace_logger.propagate = False
    namespace_logger.debug(f"Logging initialized at level {logging.getLevelName(numeric_level)}")
    return namespace_logger


def set_log_level(level: Union[str, int]) -> None:
    """Change the level of the namespace logger and all of its handlers."""
    numeric_level = parse_level(level)
    namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
    namespace_logger.setLevel(numeric_level)
    for handler in namespace_logger.handlers:
        handler.setLevel(numeric_level)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the package namespace.

    Example:
        >>> get_logger("main").name
        'docextract.main'
    """
    if name == LOGGER_NAMESPACE or name.startswith(f"{LOGGER_NAMESPACE}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


def setup_logger_from_config() -> logging.Logger:
    """Configure logging from the ``logging`` section of settings.yaml."""
    from config import get_config

    log_file = None
    if get_config("logging.file.enabled", False):
        log_file = get_config("logging.file.path")

    return setup_logger(
        level=get_config("logging.level", "INFO"),
        log_format=get_config("logging.format"),
        date_format=get_config("logging.date_format"),
        log_file=log_file,
        max_bytes=get_config("logging.file.max_bytes", 10485760),
        backup_count=get_config("logging.file.backup_count", 5),
        colorize=get_config("logging.console.colorize", True)
    )
