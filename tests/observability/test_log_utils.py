"""
Test suite for structured logging helpers.

System role: Verification of safe log context handling
"""

import logging

import pytest

from notegraph.observability.log_utils import (
    log_exception_with_context,
    log_with_context,
    safe_log_value,
)
from notegraph.observability.logger import NOISY_LOGGERS, configure_logging


class TestSafeLogValue:
    """Test suite for safe_log_value()."""

    def test_should_summarize_collections(self) -> None:
        assert safe_log_value([0.1] * 1536) == "list(1536 items)"
        assert safe_log_value({"a": 1, "b": 2}) == "dict(2 keys)"
        assert safe_log_value(None) == "None"

    def test_should_truncate_long_strings(self) -> None:
        # Act
        value = safe_log_value("x" * 600, max_length=500)

        # Assert
        assert value.startswith("x" * 500)
        assert value.endswith("(truncated, 600 total)")


class TestLogWithContext:
    """Test suite for log_with_context() and log_exception_with_context()."""

    def test_should_rename_reserved_keys(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test context keys that clash with LogRecord attributes are prefixed."""
        # Arrange
        logger = logging.getLogger("notegraph.tests.log_utils")

        # Act
        with caplog.at_level(logging.INFO, logger=logger.name):
            log_with_context(logger, logging.INFO, "Sweep finished", name="sweep", processed=3)

        # Assert
        record = caplog.records[-1]
        assert record.ctx_name == "sweep"
        assert record.processed == "3"

    def test_exception_should_carry_error_type(self, caplog: pytest.LogCaptureFixture) -> None:
        # Arrange
        logger = logging.getLogger("notegraph.tests.log_utils")

        # Act
        with caplog.at_level(logging.ERROR, logger=logger.name):
            log_exception_with_context(logger, "Sync failed", ValueError("bad"), work_id="WORK-1")

        # Assert
        record = caplog.records[-1]
        assert record.error_type == "ValueError"
        assert record.error_msg == "bad"
        assert record.work_id == "WORK-1"
        assert record.exc_info[0] is ValueError


class TestConfigureLogging:
    """Test suite for configure_logging()."""

    def test_should_set_root_level_and_quiet_libraries(self) -> None:
        # Arrange
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level

        try:
            # Act
            configure_logging("debug")

            # Assert
            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert all(logging.getLogger(name).level == logging.WARNING for name in NOISY_LOGGERS)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
