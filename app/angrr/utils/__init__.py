"""Utility modules for angrr."""

from angrr.utils.durations import format_duration, format_duration_short, parse_duration
from angrr.utils.shell import CommandResult, run_command
from angrr.utils.users import home_dir_for_uid

__all__ = [
    "CommandResult",
    "format_duration",
    "format_duration_short",
    "home_dir_for_uid",
    "parse_duration",
    "run_command",
]
