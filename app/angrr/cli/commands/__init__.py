"""CLI command implementations."""

from angrr.cli.commands import config, run, touch

__all__ = ["config", "run", "touch"]
