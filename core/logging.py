import logging
import sys
from typing import Optional

from core.config import config


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"

    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BRIGHT_BLACK = "\033[90m"
    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_MAGENTA = "\033[95m"
    BRIGHT_CYAN = "\033[96m"
    BG_RED = "\033[41m"


LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Libraries that are chatty at INFO
QUIET_LOGGERS = (
    "uvicorn",
    "uvicorn.access",
    "asyncio",
    "multipart",
    "PIL",
    "aiosqlite",
)

LOG_FORMAT = "%(asctime)s │ %(levelname)-8s │ %(location)s │ %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColorfulFormatter(logging.Formatter):
    """
    Single-line formatter with an optional colour scheme.

    Output looks like::

        2024-01-15 09:30:01 │ INFO     │ lifecycle_service.py:212 │ Application ... approved

    The level, timestamp and ``file:line`` location are coloured when
    ``use_colors`` is set; the message itself is left alone.
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BRIGHT_CYAN,
        logging.INFO: Colors.BRIGHT_GREEN,
        logging.WARNING: Colors.BRIGHT_YELLOW,
        logging.ERROR: Colors.BRIGHT_RED,
        logging.CRITICAL: Colors.BOLD + Colors.BG_RED + Colors.WHITE,
    }

    def __init__(self, use_colors: bool = True):
        super().__init__(LOG_FORMAT, DATE_FORMAT)
        self.use_colors = use_colors

    def _paint(self, text: str, color: str) -> str:
        return f"{color}{text}{Colors.RESET}" if self.use_colors else text

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        return self._paint(super().formatTime(record, datefmt), Colors.BRIGHT_BLACK)

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        record.location = (
            self._paint(record.filename, Colors.CYAN)
            + self._paint(":", Colors.BRIGHT_BLACK)
            + self._paint(str(record.lineno), Colors.BRIGHT_MAGENTA)
        )
        if self.use_colors:
            # Pad before colouring so the columns still line up
            padded = f"{levelname:<8}"
            record.levelname = self._paint(padded, self.LEVEL_COLORS.get(record.levelno, Colors.WHITE))
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure application logging.

    Uses LOG_LEVEL unless ``level`` is given. SQL statements are only logged
    at DEBUG since they carry student details. Colours are used only when
    stdout is a terminal.
    """
    level_name = (level or config.LOG_LEVEL).upper()
    log_level = LOG_LEVELS.get(level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColorfulFormatter(use_colors=sys.stdout.isatty()))
    handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    sql_level = logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(sql_level)

    root_logger.info(f"{config.APP_NAME} logging at {level_name} ({config.APP_ENV})")
    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name."""
    return logging.getLogger(name)
