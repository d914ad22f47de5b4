"""Logging setup and the lightweight ``log`` helper."""

from __future__ import annotations

import logging
import sys
from typing import Any

_LOGGER = logging.getLogger("s3proxy")

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%a %Y-%m-%d %H:%M:%S"

# Numeric LOG_LEVEL values: 0 debug, 1 info, 2 warning, 3 error, 4 fatal, 5 panic.
_LEVELS = {
    0: logging.DEBUG,
    1: logging.INFO,
    2: logging.WARNING,
    3: logging.ERROR,
    4: logging.CRITICAL,
    5: logging.CRITICAL,
}


def level_from_setting(value: int) -> int:
    if value < 0:
        return logging.DEBUG
    return _LEVELS.get(value, logging.CRITICAL)


def configure_logging(level: int = 1) -> None:
    """Install a console handler on the ``s3proxy`` logger tree."""

    resolved = level_from_setting(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    for existing in list(_LOGGER.handlers):
        _LOGGER.removeHandler(existing)
    _LOGGER.addHandler(handler)
    _LOGGER.setLevel(resolved)
    _LOGGER.propagate = False

    logging.getLogger("botocore").setLevel(max(resolved, logging.WARNING))


def _coerce(parts: tuple[object, ...]) -> str:
    rendered = " ".join(str(part) for part in parts if part is not None)
    return rendered.strip()


def log(*parts: object, **metadata: Any) -> None:
    """Emit an info-level message, appending any keyword metadata."""

    message = _coerce(parts)
    if metadata:
        message = f"{message} | {metadata}"

    if not _LOGGER.handlers and not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO)

    _LOGGER.info(message)


__all__ = ["configure_logging", "level_from_setting", "log"]
