"""
Logging setup.

Every module gets its logger through `setup_logger(__name__)`; the level
comes from settings so the whole engine can be quietened in one place.
"""

import logging
import sys

from fairshare.core.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logger(name: str) -> logging.Logger:
    """
    Get a configured logger.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger with a single stream handler attached
    """
    log = logging.getLogger(name)
    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)
        log.propagate = False
    settings = get_settings()
    log.setLevel("DEBUG" if settings.DEBUG else settings.LOG_LEVEL)
    return log


logger = setup_logger("fairshare")
