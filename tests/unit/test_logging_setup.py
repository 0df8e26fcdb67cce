"""Tests for logging configuration."""

import logging

from wander.config import Settings
from wander.middleware.logging import _app_context, setup_logging


def test_app_context_added_to_events():
    processor = _app_context(Settings(environment="staging"))

    event = processor(None, "info", {"event": "user_checked_in"})

    assert event["app"] == "wander-api"
    assert event["environment"] == "staging"


def test_app_context_keeps_explicit_values():
    processor = _app_context(Settings(environment="staging"))

    event = processor(None, "info", {"event": "x", "environment": "override"})

    assert event["environment"] == "override"


def test_sql_logging_quieted_at_debug_level():
    setup_logging(Settings(log_level="DEBUG", log_format="console"))

    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
