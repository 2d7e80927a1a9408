# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for the EduPortal client.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
"""

from src.utils.datetime import (
    ensure_utc,
    parse_iso,
    utc_now,
)
from src.utils.logging import build_formatter, setup_logging

__all__ = [
    # Logging
    "setup_logging",
    "build_formatter",
    # Datetime
    "utc_now",
    "ensure_utc",
    "parse_iso",
]
