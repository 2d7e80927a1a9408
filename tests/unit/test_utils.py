# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for datetime and logging utilities."""

import json
import logging
from datetime import datetime, timedelta, timezone

import pytest
import structlog

from src.core.config.settings import Settings
from src.utils.datetime import ensure_utc, parse_iso, utc_now
from src.utils.logging import build_formatter, setup_logging


class TestDatetimeUtils:
    """Tests for datetime helpers."""

    def test_utc_now_is_aware(self):
        """Test utc_now returns a UTC-aware datetime."""
        assert utc_now().tzinfo == timezone.utc

    def test_ensure_utc_naive(self):
        """Test naive datetimes are assumed to be UTC."""
        result = ensure_utc(datetime(2025, 1, 15, 10, 0))

        assert result == datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)

    def test_ensure_utc_converts_offsets(self):
        """Test aware datetimes are converted to UTC."""
        plus_two = timezone(timedelta(hours=2))

        result = ensure_utc(datetime(2025, 1, 15, 12, 0, tzinfo=plus_two))

        assert result.hour == 10
        assert result.tzinfo == timezone.utc

    @pytest.mark.parametrize(
        "value",
        ["2025-01-15T10:00:00Z", "2025-01-15T12:00:00+02:00", "2025-01-15T10:00:00"],
    )
    def test_parse_iso(self, value):
        """Test the timestamp shapes the backend sends."""
        assert parse_iso(value) == datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)

    def test_parse_iso_bare_date(self):
        """Test bare dates resolve to midnight UTC."""
        assert parse_iso("2025-01-15") == datetime(2025, 1, 15, tzinfo=timezone.utc)

    def test_parse_iso_invalid(self):
        """Test garbage raises ValueError."""
        assert parse_iso(None) is None
        with pytest.raises(ValueError):
            parse_iso("not a date")


@pytest.fixture
def package_logger():
    """Restore the package logger after setup_logging runs."""
    package = logging.getLogger("src")
    handlers, level = list(package.handlers), package.level
    yield package
    package.handlers = handlers
    package.setLevel(level)


class TestLoggingUtils:
    """Tests for logging setup."""

    def test_setup_logging_sets_levels(self, package_logger):
        """Test the package logger follows settings and noisy libraries are quieted."""
        setup_logging(Settings(log_level="INFO"))

        assert package_logger.level == logging.INFO
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING

    def test_setup_logging_replaces_its_handler(self, package_logger):
        """Test repeated setup keeps a single structured handler."""
        setup_logging(Settings(log_level="INFO"))
        setup_logging(Settings(log_level="DEBUG"))

        installed = [
            handler
            for handler in package_logger.handlers
            if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter)
        ]
        assert len(installed) == 1
        assert package_logger.level == logging.DEBUG

    def test_production_formatter_renders_json_with_context(self):
        """Test stdlib records become JSON carrying bound identifiers."""
        settings = Settings.model_construct(
            environment="production", debug=False, log_level="INFO"
        )
        formatter = build_formatter(settings)
        record = logging.LogRecord(
            "src.domains.parent_relation.store",
            logging.INFO,
            __file__,
            1,
            "Deleted parent-student link %s",
            ("5",),
            None,
        )

        with structlog.contextvars.bound_contextvars(link_id="5"):
            line = formatter.format(record)

        event = json.loads(line)
        assert event["event"] == "Deleted parent-student link 5"
        assert event["link_id"] == "5"
        assert event["level"] == "info"
        assert event["logger"] == "src.domains.parent_relation.store"
        assert "timestamp" in event

    def test_development_formatter_renders_console(self):
        """Test development settings render plain console lines."""
        formatter = build_formatter(Settings(log_level="DEBUG"))
        record = logging.LogRecord("src", logging.WARNING, __file__, 1, "hello", (), None)

        line = formatter.format(record)

        assert "hello" in line
        assert not line.startswith("{")
