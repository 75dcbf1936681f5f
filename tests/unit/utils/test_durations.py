"""Unit tests for duration parsing and formatting."""

from datetime import timedelta

import pytest
from angrr.utils.durations import format_duration, format_duration_short, parse_duration


class TestParseDuration:
    """Tests for parse_duration function."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("14d", timedelta(days=14)),
            ("3days", timedelta(days=3)),
            ("1w 2d", timedelta(days=9)),
            ("12h30m", timedelta(hours=12, minutes=30)),
            ("90s", timedelta(seconds=90)),
            ("250ms", timedelta(milliseconds=250)),
            ("1M", timedelta(days=30.44)),
            ("1y", timedelta(days=365.25)),
        ],
    )
    def test_valid(self, text: str, expected: timedelta) -> None:
        """Humantime items are summed."""
        assert parse_duration(text) == expected

    def test_minutes_and_months_differ(self) -> None:
        """Lowercase m is minutes, uppercase M is months."""
        assert parse_duration("1m") == timedelta(minutes=1)
        assert parse_duration("1M") > timedelta(days=30)

    @pytest.mark.parametrize("text", ["", "   ", "14", "d", "14 parsecs", "1d-2h"])
    def test_invalid(self, text: str) -> None:
        """Malformed strings raise ValueError."""
        with pytest.raises(ValueError):
            parse_duration(text)


class TestFormatDuration:
    """Tests for format_duration and format_duration_short."""

    def test_sub_second_is_zero(self) -> None:
        assert format_duration(timedelta(milliseconds=999)) == "0s"
        assert format_duration(timedelta(0)) == "0s"

    def test_compound(self) -> None:
        """Items are emitted from the most significant unit down."""
        duration = timedelta(days=2, hours=3, minutes=4, seconds=5)
        assert format_duration(duration) == "2days 3h 4m 5s"

    def test_singular(self) -> None:
        assert format_duration(timedelta(days=1)) == "1day"

    def test_short_keeps_two_items(self) -> None:
        duration = timedelta(days=2, hours=3, minutes=4, seconds=5)
        assert format_duration_short(duration) == "2days 3h"

    def test_parses_back(self) -> None:
        """Formatted durations are accepted by parse_duration."""
        duration = timedelta(days=45, hours=6)
        assert parse_duration(format_duration(duration)) == duration
