"""Loguru sinks for the generator: colourised stderr plus an optional run log."""

import sys
from typing import Optional

from loguru import logger

_LOCATION = "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
_TIME = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "


def setup_logging(level="INFO", show_time=True, log_file: Optional[str] = None):
    """Configure loguru for the generator.
    
    Parameters
    ----------
    level : str
        Logging level of the stderr sink (DEBUG, INFO, WARNING, ERROR).
    show_time : bool
        Whether to prefix stderr messages with a timestamp.
    log_file : str, optional
        Also write a DEBUG-level log of the run to this file.
    """
    logger.remove()
    
    log_format = "<level>{level: <8}</level> | " + _LOCATION
    if show_time:
        log_format = _TIME + log_format
    logger.add(sys.stderr, format=log_format, level=level, colorize=True)
    
    if log_file:
        logger.add(log_file, format=_TIME + "{level: <8} | " + _LOCATION,
                   level="DEBUG", mode='w', colorize=False)
    
    return logger

# Default setup
setup_logging()
