"""Configuration inspection commands."""

import typer

from angrr.cli.common import require_config
from angrr.core.config import render_config
from angrr.utils.formatting import console, print_success

app = typer.Typer(
    help="Inspect the effective configuration.",
    no_args_is_help=True,
)


@app.command()
def show(ctx: typer.Context) -> None:
    """Print the merged configuration as TOML."""
    config = require_config(ctx)
    console.print(render_config(config), markup=False, highlight=False, soft_wrap=True, end="")


@app.command()
def validate(ctx: typer.Context) -> None:
    """Check that the configuration loads and validates."""
    config = require_config(ctx)
    enabled = len(config.enabled_temporary_root_policies()) + len(
        config.enabled_profile_policies()
    )
    print_success(f"Configuration is valid ({enabled} enabled policies).")
