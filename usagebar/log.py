"""Logging setup routed through the shared rich console."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from .presentation.console import console

LOGGER_NAME = "usagebar"


def get_logger(name: str = "") -> logging.Logger:
    """Return the package logger or one of its children."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME)


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Attach a RichHandler to the package logger (idempotent)."""
    logger = logging.getLogger(LOGGER_NAME)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=console, show_path=False, markup=False)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    return logger
