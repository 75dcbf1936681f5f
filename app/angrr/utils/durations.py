"""Human-readable duration parsing and formatting.

Durations are written the way humantime spells them: a sequence of
``<number><unit>`` items such as ``14d``, ``1w 2d`` or ``12h30m``.
A month is 30.44 days and a year 365.25 days.
"""

import re
from datetime import timedelta

_MICROSECONDS: dict[str, int] = {}

_UNIT_ALIASES: tuple[tuple[int, tuple[str, ...]], ...] = (
    (0, ("nsec", "ns")),
    (1, ("usec", "us")),
    (1_000, ("msec", "ms")),
    (1_000_000, ("seconds", "second", "sec", "s")),
    (60_000_000, ("minutes", "minute", "min", "m")),
    (3_600_000_000, ("hours", "hour", "hr", "h")),
    (86_400_000_000, ("days", "day", "d")),
    (604_800_000_000, ("weeks", "week", "w")),
    (2_630_016_000_000, ("months", "month", "M")),
    (31_557_600_000_000, ("years", "year", "y")),
)

for _factor, _names in _UNIT_ALIASES:
    for _name in _names:
        _MICROSECONDS[_name] = _factor

_ITEM_RE = re.compile(r"\s*(\d+)\s*([A-Za-z]+)")

_YEAR_US = 31_557_600_000_000
_MONTH_US = 2_630_016_000_000
_DAY_US = 86_400_000_000


def parse_duration(text: str) -> timedelta:
    """Parse a humantime-style duration string.

    Args:
        text: Duration such as "30d", "1w 2d" or "2months".

    Returns:
        The parsed duration. Nanosecond items are truncated to zero.

    Raises:
        ValueError: If the string is empty, has an unknown unit or
            contains anything besides number/unit items.
    """
    stripped = text.strip()
    if not stripped:
        msg = "duration cannot be empty"
        raise ValueError(msg)

    total = 0
    pos = 0
    while pos < len(stripped):
        match = _ITEM_RE.match(stripped, pos)
        if match is None:
            msg = f"invalid duration {text!r}: expected <number><unit> at position {pos}"
            raise ValueError(msg)
        number, unit = match.groups()
        if unit not in _MICROSECONDS:
            msg = f"invalid duration {text!r}: unknown time unit {unit!r}"
            raise ValueError(msg)
        total += int(number) * _MICROSECONDS[unit]
        pos = match.end()
        while pos < len(stripped) and stripped[pos].isspace():
            pos += 1

    return timedelta(microseconds=total)


def _plural(value: int, singular: str) -> str:
    return f"{value}{singular}" if value == 1 else f"{value}{singular}s"


def format_duration(duration: timedelta) -> str:
    """Format a duration as space-separated humantime items.

    Sub-second precision is dropped. Zero or negative durations
    format as "0s".

    Args:
        duration: Duration to format.

    Returns:
        String such as "1month 2days 3h 4m 5s".
    """
    remaining = duration // timedelta(microseconds=1)
    if remaining < 1_000_000:
        return "0s"

    parts: list[str] = []
    years, remaining = divmod(remaining, _YEAR_US)
    months, remaining = divmod(remaining, _MONTH_US)
    days, remaining = divmod(remaining, _DAY_US)
    seconds = remaining // 1_000_000
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)

    if years:
        parts.append(_plural(years, "year"))
    if months:
        parts.append(_plural(months, "month"))
    if days:
        parts.append(_plural(days, "day"))
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if seconds:
        parts.append(f"{seconds}s")

    return " ".join(parts) if parts else "0s"


def format_duration_short(duration: timedelta) -> str:
    """Format a duration keeping only its two most significant items."""
    return " ".join(format_duration(duration).split(" ")[:2])
