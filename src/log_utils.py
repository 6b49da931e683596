"""
Logging utilities for the rollerderby compute control tool.
"""

import logging
import sys
import time

DETAILED_FORMAT = "%(asctime)s UTC - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
PLAIN_FORMAT = "%(message)s"


def setup_logging(
    verbose: bool = False, log_file: str = "rollerderby.log", plain: bool = False
) -> logging.Logger:
    """
    Set up logging configuration.

    Args:
        verbose: Enable verbose (DEBUG) logging
        log_file: Path to log file
        plain: Log bare messages (used by the listing modes)

    Returns:
        Logger instance
    """
    level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter(PLAIN_FORMAT if plain else DETAILED_FORMAT)
    formatter.converter = time.gmtime

    handlers = [logging.StreamHandler(sys.stdout), logging.FileHandler(log_file)]
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    return logging.getLogger(__name__)
