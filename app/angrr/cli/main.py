"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from pathlib import Path
from typing import Annotated

import typer

from angrr import __version__
from angrr.cli.commands import config, run, touch
from angrr.core.log import LOG_LEVELS, level_for_verbosity, setup_logging

# Create main Typer app
app = typer.Typer(
    name="angrr",
    help="Automatic Nix GC root retention.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"angrr version {__version__}")
        raise typer.Exit()


def _validate_log_level(value: str | None) -> str | None:
    if value is not None and value not in LOG_LEVELS:
        msg = f"must be one of: {', '.join(LOG_LEVELS)}"
        raise typer.BadParameter(msg)
    return value


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a configuration file merged over the defaults.",
        ),
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase log level (overridden by --log-level).",
        ),
    ] = 0,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Log level (off, error, warn, info, debug, trace).",
            callback=_validate_log_level,
        ),
    ] = None,
) -> None:
    """angrr - automatic Nix GC root retention.

    Removes stale GC roots and old profile generations according
    to declarative retention policies.
    """
    level = log_level or level_for_verbosity(verbose)
    setup_logging(level)

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["log_level_explicit"] = log_level is not None or verbose > 0


# Register commands
app.command(name="run", help="Apply retention policies.")(run.run)
app.command(name="touch", help="Refresh GC root timestamps.")(touch.touch)
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
