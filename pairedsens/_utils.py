"""Logging helpers shared by the simulation layer and the command line."""

from __future__ import annotations

import logging


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Get a logger with a single console handler attached.

    Parameters
    ----------
    name : str
        Logger name, usually the package name so that module loggers
        (``pairedsens.simulation._montecarlo`` etc.) propagate to it.
    level : int
        Logging level.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    for handler in logger.handlers[::-1]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    formatter = logging.Formatter(fmt="%(asctime)s %(message)s", datefmt="%d/%m/%Y %I:%M:%S %p")
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    logger.propagate = False

    return logger


def log_and_raise_error(
    logger: logging.Logger, message: str, exception_type: type[Exception] = ValueError,
) -> None:
    """Log an error message, then raise it as ``exception_type``."""
    logger.error(message)
    raise exception_type(message)
