"""Touch command implementation."""

from pathlib import Path
from typing import Annotated

import typer

from angrr.cli.common import require_config
from angrr.touch import Toucher, TouchOptions
from angrr.utils.formatting import print_error


def touch(
    ctx: typer.Context,
    path: Annotated[
        Path,
        typer.Argument(help="File or directory containing GC roots."),
    ],
    no_recursive: Annotated[
        bool,
        typer.Option("--no-recursive", "-r", help="Do not recurse into directories."),
    ] = False,
    silent: Annotated[
        bool,
        typer.Option("--silent", "-s", help="Do not list touched links."),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Do not actually touch files."),
    ] = False,
) -> None:
    """Refresh the timestamps of GC roots under PATH."""
    config = require_config(ctx)

    if not path.exists() and not path.is_symlink():
        print_error(f"Path does not exist: {path}")
        raise typer.Exit(code=1)

    options = TouchOptions(path=path, recursive=not no_recursive, silent=silent, dry_run=dry_run)
    Toucher(config.store, options).touch()
