"""Logging setup shared by the entry points."""

import logging
import sys
from typing import Optional

from ..config import Config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
HANDLER_NAME = "tangoroid-console"


def setup_logger(name: str = "tangoroid", level: Optional[str] = None) -> logging.Logger:
    """
    Configure and return the package logger.
    
    Safe to call more than once: the console handler is only added
    the first time.
    
    Args:
        name: Logger name (package root by default)
        level: Level name, defaults to Config.LOG_LEVEL
        
    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel((level or Config.LOG_LEVEL).upper())
    
    if not any(h.get_name() == HANDLER_NAME for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
        handler.set_name(HANDLER_NAME)
        logger.addHandler(handler)
    
    return logger
