"""Command-line interface for angrr."""

from angrr.cli.main import app

__all__ = ["app"]
