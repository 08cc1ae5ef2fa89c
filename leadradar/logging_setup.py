"""
Logging configuration for LeadRadar.
Provides structured logging with rotation for long-running workers and the API.
"""

import logging
import logging.handlers
import sys
import uuid
from datetime import datetime, timezone

from .config import LOG_DIR


def setup_logging(
    name: str = "leadradar",
    level: int = logging.INFO,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    log_to_file: bool = True,
) -> logging.Logger:
    """
    Configure logging with both file and console output.

    File logs rotate at max_bytes, keeping backup_count old files.
    Console output goes to stderr so stdout stays clean for --json output.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid duplicate handlers on repeated calls
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s.%(funcName)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    if log_to_file:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=LOG_DIR / "leadradar.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8"
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


def get_logger(module_name: str) -> logging.Logger:
    """Get a child logger for a specific module."""
    return logging.getLogger(f"leadradar.{module_name}")


class SearchContext:
    """
    Context manager for tracking a single search.
    Logs start/end times and provides a search_id for correlation.
    """

    def __init__(self, logger: logging.Logger, label: str = ""):
        self.logger = logger
        self.label = label
        self.search_id = f"{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:6]}"
        self.start_time = None
        self.stats = {
            "candidates_found": 0,
            "candidates_skipped": 0,
            "websites_probed": 0,
            "websites_reachable": 0,
            "websites_analyzed": 0,
            "results_returned": 0,
        }

    def __enter__(self):
        self.start_time = datetime.now(timezone.utc)
        self.logger.info(f"=== Search started: {self.search_id} {self.label} ===")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = datetime.now(timezone.utc) - self.start_time
        self.logger.info(
            f"=== Search completed: {self.search_id} | "
            f"Duration: {duration} | "
            f"Stats: {self.stats} ==="
        )
        if exc_type:
            self.logger.error(f"Search failed with exception: {exc_type.__name__}: {exc_val}")
        return False  # Don't suppress exceptions

    def increment(self, stat: str, amount: int = 1):
        """Increment a stat counter."""
        if stat in self.stats:
            self.stats[stat] += amount
