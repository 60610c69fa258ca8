"""Logging setup for the invoice entry server."""

from __future__ import annotations

import logging
import os
import sys

HANDLER_NAME = "invoice_entry"


def setup_logging(level: str | None = None) -> None:
    """Install a single stdout handler on the root logger.

    The level comes from ``level`` or the ``LOG_LEVEL`` environment variable
    and falls back to INFO. Calling this twice does not stack handlers.
    """
    name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, name, logging.INFO)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in list(root_logger.handlers):
        if handler.get_name() == HANDLER_NAME:
            root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler.set_name(HANDLER_NAME)
    root_logger.addHandler(console_handler)

    logging.getLogger("werkzeug").setLevel(max(log_level, logging.INFO))
