"""Package logger and small helpers for progress and advisory messages."""

import logging
from typing import Union

_LOGGER = logging.getLogger("swfdr")


def configure_logging(level: Union[str, int] = "INFO", fmt: str = "%(message)s") -> None:
    """
    Configure swfdr logging once.

    Parameters
    ----------
    level : str or int, default='INFO'
        Logging level (e.g. 'INFO', 'DEBUG')
    fmt : str
        Logging format string
    """
    if _LOGGER.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt))
    _LOGGER.addHandler(handler)
    _LOGGER.setLevel(level)


def get_logger() -> logging.Logger:
    return _LOGGER


def warn(msg: str) -> None:
    """Emit a warning through the package logger."""
    _LOGGER.warning(msg)


def info(msg: str) -> None:
    """Emit an informational message through the package logger."""
    _LOGGER.info(msg)


def debug(msg: str) -> None:
    _LOGGER.debug(msg)
