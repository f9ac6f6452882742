"""Logging configuration for Jungle Flip."""

from __future__ import annotations

import logging
import sys


def setup_logging(level: str = "INFO", format_json: bool = False) -> None:
    """
    Configure logging for the application.

    Args:
        level: The logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: Emit one JSON object per line instead of plain text
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    if format_json:
        formatter = logging.Formatter(
            '{"time":"%(asctime)s","level":"%(levelname)s","name":"%(name)s","message":"%(message)s"}'
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    handler.setFormatter(formatter)

    # Repeated calls (CLI then app factory) must not stack handlers
    for existing in list(logging.root.handlers):
        if getattr(existing, "_jungle_handler", False):
            logging.root.removeHandler(existing)
    handler._jungle_handler = True  # type: ignore[attr-defined]

    logging.root.setLevel(log_level)
    logging.root.addHandler(handler)


__all__ = ["setup_logging"]
