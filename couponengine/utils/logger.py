"""
Logging for the coupon engine.

All modules log under the ``couponengine`` namespace, e.g.
``couponengine.core.service``. The level comes from ``COUPON_LOG_LEVEL``
(falling back to ``LOG_LEVEL``, then INFO).
"""
import logging
import os
import sys
from typing import Optional, TextIO

ROOT_LOGGER_NAME = "couponengine"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(ROOT_LOGGER_NAME)


def _level_from_env() -> str:
    return (os.getenv("COUPON_LOG_LEVEL") or os.getenv("LOG_LEVEL") or "INFO").upper()


def configure_logging(level: Optional[str] = None, stream: Optional[TextIO] = None) -> logging.Logger:
    """
    (Re)configure the engine's root logger.

    Replaces any handler installed earlier, so calling it again with a new
    level or stream takes effect.
    """
    level = (level or _level_from_env()).upper()
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)

    # Engine logs are self-contained; don't duplicate them through the root logger
    logger.propagate = False
    return logger


if not logger.handlers:
    configure_logging()


def get_logger(name: str = None) -> logging.Logger:
    """Logger for a module, e.g. get_logger("data.backends")."""
    if name:
        return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
    return logger
