"""
Logging configuration for the storefront assistant.

Every module asks for a child of the ``storefront`` logger via get_logger().
"""
import logging
import sys

from config import config

logger = logging.getLogger("storefront")
logger.setLevel(config.LOG_LEVEL)

if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(config.LOG_LEVEL)
    console_handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(console_handler)

logger.propagate = False


def get_logger(name: str = None) -> logging.Logger:
    """Return the package logger, or a ``storefront.<name>`` child."""
    if name:
        return logging.getLogger(f"storefront.{name}")
    return logger
