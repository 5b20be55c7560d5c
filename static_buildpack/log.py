"""Logging setup for the detect and build phases.

The lifecycle captures the buildpack's stdout, so records go there with a
plain formatter.
"""

import logging
import sys

PACKAGE_LOGGER = 'static_buildpack'


def setup_logging(level: str = 'INFO') -> logging.Logger:
    """Configure the package logger.

    Args:
        level: Level name, e.g. ``INFO`` or ``DEBUG``.

    Returns:
        The configured package logger.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Prevent propagation to root logger
    package_logger.propagate = False

    # Clear existing handlers so repeated setup does not duplicate lines
    package_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if package_logger.level <= logging.DEBUG:
        formatter = logging.Formatter('  [%(levelname)s] %(name)s: %(message)s')
    else:
        formatter = logging.Formatter('  %(message)s')
    handler.setFormatter(formatter)
    package_logger.addHandler(handler)

    return package_logger
