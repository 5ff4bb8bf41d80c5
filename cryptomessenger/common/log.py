"""
Logging setup for CryptoMessenger scripts.

Library modules only create loggers; handlers are installed here.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "WARNING") -> None:
    """
    Install a stderr handler on the package logger.
    
    Args:
        level: Logging level name (e.g. "INFO", "DEBUG")
    """
    logger = logging.getLogger("cryptomessenger")
    logger.setLevel(level.upper())
    
    if not any(getattr(h, "_cryptomessenger", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._cryptomessenger = True
        logger.addHandler(handler)
