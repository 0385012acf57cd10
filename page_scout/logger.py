"""Logging setup for **page_scout**.

All modules log through ``logging.getLogger(__name__)``, so every record ends
up in the ``page_scout`` logger configured here::

    from page_scout.logger import configure
    configure(level="DEBUG", log_file="crawl.log")

Console output goes to stderr so that reports printed on stdout stay
machine-readable. The optional log file rotates at 5 MB and always records
DEBUG, where per-page skips and strategy escalations are logged.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Union

_DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_LOGGER_NAME: Final[str] = "page_scout"

# chatty libraries; their warnings are still shown
_NOISY_LOGGERS: Final[tuple[str, ...]] = ("asyncio", "aiohttp.access", "aiohttp.client", "charset_normalizer")

_LevelT = Union[int, str]


def _stderr_handler(level: _LevelT, fmt: str) -> logging.StreamHandler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _rotating_handler(path: Path | str, fmt: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(filename=str(path), maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """(Re)configure the ``page_scout`` logger.

    Parameters
    ----------
    level
        Console level, numeric or textual (``"DEBUG"``, ``"INFO"``, ...).
    log_file
        Optional logfile, written at DEBUG regardless of ``level``.
    log_format
        Format string for :class:`logging.Formatter`.
    replace_handlers
        Drop handlers from a previous call first.
    """
    lg = logging.getLogger(_LOGGER_NAME)
    if replace_handlers:
        lg.handlers.clear()

    lg.addHandler(_stderr_handler(level, log_format))
    if log_file is not None:
        lg.addHandler(_rotating_handler(log_file, log_format))
        lg.setLevel(logging.DEBUG)
    else:
        lg.setLevel(level)
    lg.propagate = False

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return lg


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
) -> logging.Logger:
    """Entry point used by the CLI."""
    return configure(level=level, log_file=log_file, log_format=log_format)


logger: logging.Logger = logging.getLogger(_LOGGER_NAME)

__all__ = ["logger", "configure", "init_logging"]
