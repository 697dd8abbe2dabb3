"""
Logging Configuration
Sets up the logger for the Flow package.

Solver progress and solutions are printed to stdout, so log records go to
stderr. A log file can keep the per-move debug trace while the console only
shows warnings.
"""
import logging
import sys
from typing import Optional

CONSOLE_FORMAT = '%(levelname)s %(name)s: %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: int = logging.WARNING, log_file: Optional[str] = None,
                  file_level: int = logging.DEBUG) -> logging.Logger:
    """
    Configures the logger for the 'Flow' namespace.

    Args:
        level: Console logging level (e.g. logging.WARNING, logging.DEBUG)
        log_file: Optional path to save logs to a file.
        file_level: Logging level for the file, usually more detailed than the console.

    Returns the configured logger.
    """
    logger = logging.getLogger("Flow")
    logger.setLevel(min(level, file_level) if log_file else level)
    # Records stay out of the root logger's handlers
    logger.propagate = False

    # Calling again replaces the previous handlers
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%H:%M:%S'))
        logger.addHandler(file_handler)

    logger.debug("Logging initialized (console %s, file %s)",
                 logging.getLevelName(level), log_file or "off")
    return logger
