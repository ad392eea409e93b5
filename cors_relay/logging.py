"""Logging setup for the relay and the aiohttp loggers it drives."""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"

# aiohttp loggers whose volume is tuned separately from the relay's own
AIOHTTP_LOGGERS = ("aiohttp.access", "aiohttp.client", "aiohttp.server", "aiohttp.web")


def setup_logging(level: int | str = logging.INFO, aiohttp_level: int | str = logging.WARNING) -> None:
    """
    Route all records to stdout.

    Args:
        level: level of the root logger and of ``cors_relay.*``
        aiohttp_level: level of aiohttp's access, client, server and web loggers
    """
    level = _coerce(level)
    aiohttp_level = _coerce(aiohttp_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in AIOHTTP_LOGGERS:
        logging.getLogger(name).setLevel(aiohttp_level)


def _coerce(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
