"""Root logger configuration for the CLI."""
from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_NOISY_LOGGERS = ("aiohttp", "asyncio")

_handler: logging.Handler | None = None


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger; unknown level names fall back to INFO.

    Safe to call repeatedly: the stream handler installed by a previous call
    is replaced rather than duplicated.
    """
    global _handler

    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)

    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(_handler)
    root.setLevel(resolved)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
