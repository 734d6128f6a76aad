"""
Unified Logging Configuration for Insight Summarizer

This module provides a centralized logging system that combines:
- Console output with timestamps (DEBUG_MODE only)
- Optional file output when INSIGHT_SUMMARIZER_LOG_FILE is set
- Performance timing via Timer context manager

All modules should import logging functions from this module:
    from insight_summarizer.logging_config import debug_log, info, warning, error, Timer

The module respects DEBUG_MODE from config:
- DEBUG_MODE=True: All messages shown on console, verbose timing
- DEBUG_MODE=False: Only warnings/errors reach the console (via lastResort)

Log Levels:
- debug_log(): Detailed tracing (prefix with [MODULE] for clarity)
- info(): Standard information messages
- warning(): Warning messages (always shown)
- error(): Error messages with optional exception info
"""

import logging
import sys
import time

from insight_summarizer.config import DEBUG_MODE, LOG_DATE_FORMAT, LOG_FILE, LOG_FORMAT

LOGGER_NAME = 'InsightSummarizer'


def _setup_standard_logging() -> logging.Logger:
    """
    Configure the standard Python logging framework.

    Returns:
        Configured logger instance for Insight Summarizer
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if DEBUG_MODE else logging.INFO)

    # Prevent duplicate handlers if called multiple times
    if logger.handlers:
        return logger

    if LOG_FILE:
        try:
            file_handler = logging.FileHandler(LOG_FILE, encoding='utf-8')
        except OSError as e:
            sys.stderr.write(f"[{LOGGER_NAME}] Cannot open log file {LOG_FILE}: {e}\n")
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
            logger.addHandler(file_handler)

    # Console handler (respects DEBUG_MODE)
    if DEBUG_MODE:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        logger.addHandler(console_handler)

    return logger


# Global standard logger instance
_logger = _setup_standard_logging()


class Timer:
    """
    Context manager for timing code blocks with automatic logging.

    Usage:
        with Timer("Chunking"):
            # code to time
            pass

    Output (DEBUG_MODE=True):
        [DEBUG 14:32:01] Starting Chunking...
        [DEBUG 14:32:01] Chunking took 3 ms

    Attributes:
        operation_name: Name of the operation being timed
        duration_ms: Duration in milliseconds (available after exit)
    """

    def __init__(self, operation_name: str, auto_log: bool = True):
        self.operation_name = operation_name
        self.auto_log = auto_log
        self.start_time: float | None = None
        self.end_time: float | None = None
        self.duration_ms: float | None = None

    def __enter__(self):
        if self.auto_log:
            debug_log(f"Starting {self.operation_name}...")
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end_time = time.perf_counter()
        self.duration_ms = (self.end_time - self.start_time) * 1000

        if self.auto_log:
            debug_timing(self.operation_name, self.duration_ms / 1000)

        return False  # Don't suppress exceptions

    def get_duration_ms(self) -> float:
        """
        Get the measured duration in milliseconds.

        Raises:
            ValueError: If timer has not completed yet
        """
        if self.duration_ms is None:
            raise ValueError("Timer has not been completed yet")
        return self.duration_ms


def debug_log(message: str):
    """
    Log a debug message.

    Args:
        message: The message to log (prefix with [MODULE] for clarity)

    Example:
        debug_log("[CHUNKER] Subdividing group of 10 documents")
    """
    _logger.debug(message)


def info(message: str):
    """Log an informational message."""
    _logger.info(message)


def warning(message: str):
    """Log a warning message."""
    _logger.warning(message)


def error(message: str, exc_info: bool = False):
    """
    Log an error message with optional exception traceback.

    Args:
        message: The error message to log
        exc_info: If True, include exception traceback (only in DEBUG_MODE)
    """
    _logger.error(message, exc_info=exc_info and DEBUG_MODE)


def debug_timing(operation: str, elapsed_seconds: float):
    """
    Log operation timing information in human-readable format.

    Example:
        start = time.perf_counter()
        # ... do work ...
        debug_timing("Map phase", time.perf_counter() - start)
        # Output: "Map phase took 2.34s"
    """
    if elapsed_seconds < 1:
        time_str = f"{elapsed_seconds*1000:.0f} ms"
    elif elapsed_seconds < 60:
        time_str = f"{elapsed_seconds:.2f}s"
    else:
        time_str = f"{elapsed_seconds/60:.1f}m"
    debug_log(f"{operation} took {time_str}")


__all__ = [
    'debug_log',
    'debug_timing',
    'info',
    'warning',
    'error',
    'Timer',
    'DEBUG_MODE',
    'LOGGER_NAME',
]
