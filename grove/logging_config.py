"""Logging configuration for grove.

The TUI owns the terminal, so records only ever go to a log file.
"""
import logging
from pathlib import Path
from typing import Optional


def default_log_file() -> Path:
    return Path.home() / '.grove' / 'grove.log'


def setup_logging(debug: bool = False, log_file: Optional[str] = None) -> None:
    """
    Configure logging for the application.

    Args:
        debug: If True, record DEBUG level messages in the default log file
        log_file: Explicit log file path; implies file logging
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if (debug or log_file) else logging.WARNING)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if debug or log_file:
        path = Path(log_file).expanduser() if log_file else default_log_file()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, mode='w')  # Overwrite each run
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        root_logger.addHandler(file_handler)
    else:
        # Keep the last-resort handler from writing over the screen
        root_logger.addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """Get a logger named after the module, without the package prefix."""
    if name.startswith('grove.'):
        name = name[len('grove.'):]
    return logging.getLogger(name)
