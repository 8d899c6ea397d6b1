"""Logging configuration for Context Fetcher."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from config import LOG_DIR, LOG_LEVEL

LOGGER_NAME = "context_fetcher"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"


class DailyLogFileHandler(logging.FileHandler):
    """File handler for context-YYYY-MM-DD.log that creates its folder on first write."""

    def __init__(self, log_dir: Path):
        self.log_dir = Path(log_dir)
        log_file = self.log_dir / f"context-{datetime.now().strftime('%Y-%m-%d')}.log"
        super().__init__(log_file, encoding="utf-8", delay=True)

    def _open(self):
        self.log_dir.mkdir(parents=True, exist_ok=True)
        return super()._open()


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(log_dir: Optional[Path] = None, level: Optional[str] = None) -> logging.Logger:
    """Set up logging to the dated log file and, for interactive runs, the console.

    Nothing touches the disk until the first record is written.
    Traversal decisions (enqueue, skip, include) are logged at DEBUG;
    set CONTEXT_LOG_LEVEL=DEBUG to see them.

    Args:
        log_dir: Folder for log files (defaults to LOG_DIR)
        level: Level name (defaults to CONTEXT_LOG_LEVEL)
    """
    resolved = _resolve_level(level or LOG_LEVEL)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolved)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    file_handler = DailyLogFileHandler(log_dir or LOG_DIR)
    file_handler.setLevel(resolved)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(file_handler)

    if sys.stdout is not None and sys.stdout.isatty():
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(resolved)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
        logger.addHandler(console_handler)

    return logger


# Global logger instance
logger = setup_logging()
