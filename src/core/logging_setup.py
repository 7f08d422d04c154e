"""Logging configuration.

Console output goes through rich's handler so log lines share the terminal
with status messages and tables; an optional rotating file keeps a full
DEBUG trace of every spawned command.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "memsrv_build"


def setup_logging(
    level: str | None = "INFO",
    *,
    log_file: Path | None = None,
    console: Console | None = None,
) -> logging.Logger:
    """Configure and return the top-level `memsrv_build` logger.

    Safe to call more than once: handlers are only added when missing, and
    `level=None` keeps the console level already in place.
    """

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    rich_handler = next((h for h in logger.handlers if isinstance(h, RichHandler)), None)
    if rich_handler is None:
        rich_handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        rich_handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(rich_handler)
    if level is not None or rich_handler.level == logging.NOTSET:
        rich_handler.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))

    if log_file is not None and not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fhandler = RotatingFileHandler(log_file, maxBytes=512_000, backupCount=3, encoding="utf-8")
        fhandler.setLevel(logging.DEBUG)
        fhandler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(fhandler)
        logger.debug("Logging to %s", log_file)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger under the `memsrv_build` namespace."""

    return logging.getLogger(f"{LOGGER_NAME}.{name}")
