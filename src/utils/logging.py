# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Log output for the EduPortal client.

Client modules log through ``logging.getLogger(__name__)``. This module
routes those records through structlog's ProcessorFormatter so they pick
up timestamps, levels and any context bound with
``structlog.contextvars.bound_contextvars`` (the relationship store binds
``parent_id``/``student_id``/``link_id`` around its writes).

Example:
    >>> from src.utils.logging import setup_logging
    >>> from src.core.config import get_settings
    >>> setup_logging(get_settings())
"""

import logging
import sys
from typing import TYPE_CHECKING

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from src.core.config.settings import Settings

PACKAGE_LOGGER = "src"
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")

# Marks handlers installed here so repeated setup replaces them
_HANDLER_NAME = "eduportal"


def build_formatter(settings: "Settings") -> structlog.stdlib.ProcessorFormatter:
    """Build the formatter for client log records.

    Args:
        settings: Application settings; console output when debugging or in
            development, JSON lines otherwise.

    Returns:
        Formatter rendering stdlib records with bound context merged in.
    """
    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if settings.is_development or settings.debug:
        renderer: Processor = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    else:
        renderer = structlog.processors.JSONRenderer()

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def setup_logging(settings: "Settings") -> None:
    """Attach a structured handler to the client's package logger.

    Safe to call more than once; the previous handler is replaced.

    Args:
        settings: Application settings containing log_level and debug flag.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(build_formatter(settings))

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for existing in list(package_logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            package_logger.removeHandler(existing)
    package_logger.addHandler(handler)
    package_logger.setLevel(log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
