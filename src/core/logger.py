"""
Logging setup for the Medicine Cabinet API.
All modules log through children of the ``medicine_cabinet`` logger.
"""
import logging
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
ROOT_LOGGER_NAME = "medicine_cabinet"


def setup_logging(level: str = None) -> logging.Logger:
    """Configure the application logger once and return it."""
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(log_level)

    # Avoid duplicate console handlers on re-import
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_logger(name: str = None) -> logging.Logger:
    """Return the application logger or one of its children."""
    base = logging.getLogger(ROOT_LOGGER_NAME)
    return base.getChild(name) if name else base
