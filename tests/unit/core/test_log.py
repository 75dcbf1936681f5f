"""Unit tests for logging setup."""

import logging

import pytest
from angrr.core.log import (
    LOG_LEVELS,
    PACKAGE_LOGGER,
    TRACE,
    level_for_verbosity,
    set_log_level,
    setup_logging,
)
from rich.logging import RichHandler


class TestLevelForVerbosity:
    """Tests for level_for_verbosity function."""

    @pytest.mark.parametrize(
        ("verbose", "expected"),
        [(0, "info"), (1, "debug"), (2, "trace"), (7, "trace")],
    )
    def test_steps(self, verbose: int, expected: str) -> None:
        assert level_for_verbosity(verbose) == expected


class TestSetupLogging:
    """Tests for setup_logging and set_log_level."""

    def test_single_rich_handler(self) -> None:
        """Repeated setup replaces rather than stacks handlers."""
        setup_logging("info")
        setup_logging("debug")

        logger = logging.getLogger(PACKAGE_LOGGER)
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)
        assert logger.level == logging.DEBUG

    def test_trace_level(self) -> None:
        setup_logging("trace")

        assert logging.getLogger(PACKAGE_LOGGER).level == TRACE
        assert logging.getLevelName(TRACE) == "TRACE"

    def test_off_silences_errors(self) -> None:
        set_log_level("off")

        assert not logging.getLogger(PACKAGE_LOGGER).isEnabledFor(logging.CRITICAL)
        assert LOG_LEVELS["off"] > logging.CRITICAL
