"""Helpers shared by CLI commands."""

import typer

from angrr.core.config import Config, ConfigError, load_config
from angrr.core.log import set_log_level
from angrr.utils.formatting import print_error


def require_config(ctx: typer.Context) -> Config:
    """Load the configuration selected by the global options.

    Applies the configured log level unless -v or --log-level was given.
    Exits with code 1 if the configuration is invalid.
    """
    obj = ctx.obj or {}
    try:
        config = load_config(obj.get("config_path"))
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not obj.get("log_level_explicit", False):
        set_log_level(config.log_level)
    return config
