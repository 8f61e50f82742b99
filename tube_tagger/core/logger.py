"""
Logging configuration for tube-tagger.

This module sets up the logging system with multiple outputs:
    - Console: Real-time progress with tqdm-compatible formatting
    - log_full.log: Complete log of all events (DEBUG and above)
    - log_errors.log: Only ERROR and CRITICAL level messages
    - postprocessing_failures.log: Rejected file groups and failed bundles

Everything shown on screen is also saved to file, then filtered into
the specialized files.

Usage:
    from tube_tagger.core.logger import setup_logging, get_logger

    setup_logging(log_dir)  # Call once at startup
    logger = get_logger(__name__)  # Get logger for each module

    logger.info("Starting post-processing")
"""

import logging
import sys
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Formatter that colors the level name for console output.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        colored_levelname = f"{color}{record.levelname}{Colors.RESET}"
        return f"{colored_levelname}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes to console without breaking tqdm progress bars.

    Standard logging to stderr interferes with tqdm's in-place updates.
    This handler uses tqdm.write(), which prints above any active bar.
    """

    def __init__(self, stream: TextIO = sys.stderr) -> None:
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


class PostProcessingFailureHandler(logging.Handler):
    """
    Handler that collects post-processing failures into a report file.

    Only records carrying a 'failed_resource_id' extra are written, in a
    short human-readable block:

        [abcdefghijk] tagging: Failed to save tags
          /work/Song [abcdefghijk].m4a

    Recognised extra fields:
        - 'failed_resource_id': Video ID of the bundle or rejected group
        - 'failed_stage': grouping, metadata, tagging or moving
        - 'failed_reason': Short description of the failure
        - 'failed_files': Paths involved (optional)

    Use log_bundle_failure() to emit records with the right extras.
    """

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """Open the report file for writing (overwrites existing content)."""
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        if not hasattr(record, "failed_resource_id"):
            return

        if self.report_file is None:
            return

        try:
            resource_id = getattr(record, "failed_resource_id", "?")
            stage = getattr(record, "failed_stage", "unknown")
            reason = getattr(record, "failed_reason", "")
            files = getattr(record, "failed_files", None) or []

            # Thread pool workers can log concurrently
            self.acquire()
            try:
                self.report_file.write(f"[{resource_id}] {stage}: {reason}\n")
                for file_path in files:
                    self.report_file.write(f"  {file_path}\n")
                self.report_file.write("\n")
                self.report_file.flush()
            finally:
                self.release()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Close the report file handle. Safe to call multiple times."""
        if self.report_file is not None:
            try:
                self.report_file.close()
            except OSError:
                pass
            self.report_file = None
        super().close()


class ErrorOnlyFilter(logging.Filter):
    """Filter that only allows ERROR and CRITICAL level records."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(log_dir: Path, verbose: bool = False) -> None:
    """
    Configure the logging system for the application.

    Call this ONCE at application startup, after the configuration is
    loaded but before any other operations.

    Args:
        log_dir: Directory where log files will be created (created if missing).
        verbose: Show DEBUG messages on the console as well.

    Behavior:
        1. Create log_dir if it doesn't exist
        2. Configure root logger level to DEBUG and drop existing handlers
        3. Console handler (TqdmLoggingHandler), INFO or DEBUG
        4. log_full_{timestamp}.log, DEBUG
        5. log_errors_{timestamp}.log, ERROR+ via ErrorOnlyFilter
        6. postprocessing_failures_{timestamp}.log via PostProcessingFailureHandler
    """
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    full_handler = logging.FileHandler(log_dir / f"log_full_{timestamp}.log", mode="w", encoding="utf-8")
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    root_logger.addHandler(full_handler)

    error_handler = logging.FileHandler(log_dir / f"log_errors_{timestamp}.log", mode="w", encoding="utf-8")
    error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
    error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    failure_handler = PostProcessingFailureHandler(log_dir / f"postprocessing_failures_{timestamp}.log")
    failure_handler.open()
    root_logger.addHandler(failure_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.

    Note:
        Loggers obtained before setup_logging() is called have no handlers
        of their own and propagate to the root logger.
    """
    return logging.getLogger(name)


def log_bundle_failure(
    logger: logging.Logger,
    resource_id: str,
    stage: str,
    reason: str,
    files: Iterable[Path | str] = (),
    level: int = logging.ERROR
) -> None:
    """
    Log a rejected file group or a failed bundle.

    Attaches the extra fields PostProcessingFailureHandler needs to
    write the entry into the failures report.

    Example:
        log_bundle_failure(
            logger,
            resource_id="abcdefghijk",
            stage="moving",
            reason="Permission denied",
            files=[Path("/work/Song [abcdefghijk].m4a")]
        )
    """
    file_list = sorted(str(f) for f in files)
    logger.log(
        level,
        f"[{resource_id}] {stage} failed: {reason}",
        extra={
            "failed_resource_id": resource_id,
            "failed_stage": stage,
            "failed_reason": reason,
            "failed_files": file_list,
        }
    )


def shutdown_logging() -> None:
    """
    Flush, close and remove all handlers from the root logger.

    Typically called in a finally block at application exit.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except (OSError, ValueError):
            pass
        root_logger.removeHandler(handler)
