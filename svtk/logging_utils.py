# svtk/logging_utils.py
"""
Logging utilities for load scripts.

Sets up the pattern of timestamped log files like script_name_YYYYMMDD_HHMMSS.log,
with a separate error log that is only created once something goes wrong.
"""

import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

# Module-level state for error tracking
_error_handler: Optional['ErrorCountHandler'] = None
_main_log_path: Optional[str] = None
_error_log_path: Optional[str] = None


class ErrorCountHandler(logging.Handler):
    """Handler that counts ERROR and CRITICAL messages and lazily creates the error log."""

    def __init__(self, error_log_path: Optional[str] = None, formatter: Optional[logging.Formatter] = None):
        super().__init__()
        self.error_count = 0
        self.error_log_path = error_log_path
        self.formatter = formatter
        self._error_file_handler = None

    def emit(self, record):
        """Count errors and create the error log file on the first one."""
        if record.levelno < logging.ERROR:
            return
        self.error_count += 1
        if self.error_log_path and self._error_file_handler is None:
            try:
                self._error_file_handler = logging.FileHandler(self.error_log_path, encoding='utf-8')
            except OSError as e:
                logger.warning(f"Failed to create error log file: {e}")
                return
            self._error_file_handler.setLevel(logging.ERROR)
            if self.formatter:
                self._error_file_handler.setFormatter(self.formatter)
            logging.getLogger().addHandler(self._error_file_handler)
            logger.debug(f"Created error log file: {self.error_log_path}")


def setup_logging(
    script_name: Optional[str] = None,
    log_dir: Optional[str] = None,
    level: Optional[str] = None,
    split_errors: Optional[bool] = None,
    console: Optional[bool] = None
) -> Tuple[str, Optional[str]]:
    """
    Configure logging for a load script.

    Creates log files with pattern: {script_name}_{datetime}.log
    Optionally creates separate error log: {script_name}_{datetime}_error.log

    Args:
        script_name: Base name for log files (defaults to script filename without extension)
        log_dir: Directory for log files (defaults to the logging.directory setting)
        level: Logging level string - DEBUG, INFO, WARNING, ERROR
        split_errors: Create separate error log file
        console: Also log to stdout

    Returns:
        Tuple of (log_file_path, error_log_path or None)

    Example
    -------
    ::

        import svtk

        svtk.setup_logging('employee_load')
        reader, error = svtk.open('employees.csv', header=True)
    """
    from .config import get_setting

    if script_name is None:
        script_name = Path(sys.argv[0]).stem or 'svtk'

    logging_config = get_setting('logging', {})

    log_dir = log_dir or logging_config.get('directory', './logs')
    level = level or logging_config.get('level', 'INFO')
    split_errors = split_errors if split_errors is not None else logging_config.get('split_errors', True)
    console = console if console is not None else logging_config.get('console', True)

    log_format = logging_config.get('format', '%(asctime)s [%(levelname)s] %(name)s: %(message)s')
    timestamp_format = logging_config.get('timestamp_format', '%Y-%m-%d %H:%M:%S')
    filename_format = logging_config.get('filename_format', '%Y%m%d_%H%M%S')

    log_dir_path = Path(log_dir)
    log_dir_path.mkdir(parents=True, exist_ok=True)

    if filename_format:
        stem = f"{script_name}_{datetime.now().strftime(filename_format)}"
    else:
        # No timestamp - single rolling log file
        stem = script_name
    log_file = log_dir_path / f"{stem}.log"
    error_file = log_dir_path / f"{stem}_error.log" if split_errors else None

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers to avoid duplicates
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(log_format, datefmt=timestamp_format)

    global _error_handler, _main_log_path, _error_log_path
    _error_handler = ErrorCountHandler(
        error_log_path=str(error_file) if error_file else None,
        formatter=formatter
    )
    _error_handler.setLevel(logging.ERROR)
    root_logger.addHandler(_error_handler)

    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, level.upper()))
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    logging.info(f"Logging initialized: {log_file}")

    _main_log_path = str(log_file)
    _error_log_path = str(error_file) if error_file else None

    return _main_log_path, _error_log_path


def errors_logged() -> Optional[str]:
    """
    Check if any ERROR or CRITICAL messages were logged during this run.

    Returns
    -------
    str or None
        Path to the error log (split_errors=True) or the main log
        (split_errors=False) when errors were logged, otherwise None.

    Example
    -------
    ::

        svtk.setup_logging('nightly_load')
        for record, positions in reader:
            ...
        if svtk.errors_logged():
            notify_operators()
    """
    if _error_handler is None:
        logger.warning("errors_logged() called but setup_logging() was not called")
        return None

    if _error_handler.error_count == 0:
        return None
    return _error_log_path or _main_log_path
