"""Logging setup shared by all modules."""

from __future__ import annotations

import logging
import os

_HANDLER_ATTACHED = False
_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _resolve_level(level: str | None = None) -> int:
    level_name = (level or os.getenv("TRIAGEDESK_LOG_LEVEL", "INFO")).upper()
    return getattr(logging, level_name, logging.INFO)


def configure_logging(level: str | None = None) -> None:
    """Attach a single stream handler to the root logger and set its level."""
    global _HANDLER_ATTACHED

    if not _HANDLER_ATTACHED:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logging.getLogger().addHandler(handler)
        _HANDLER_ATTACHED = True
    logging.getLogger().setLevel(_resolve_level(level))


def get_logger(name: str) -> logging.Logger:
    """Return a module logger; the root handler is attached on first use."""
    if not _HANDLER_ATTACHED:
        configure_logging()
    return logging.getLogger(name)
