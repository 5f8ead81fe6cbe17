"""structlog setup shared by the CLI and the HTTP application."""

from __future__ import annotations

import logging

import structlog


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog with a level filter.

    Args:
        level: Name of the minimum level to emit (DEBUG, INFO, ...).
    """

    numeric = getattr(logging, str(level).upper(), logging.INFO)
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
    )
