"""Run command implementation.

Applies the enabled temporary root and profile policies, prompting
according to the interactivity mode, and prints statistics.
"""

import os
from pathlib import Path
from typing import Annotated

import typer

from angrr.cli.common import require_config
from angrr.core.context import Current
from angrr.core.errors import AngrrError
from angrr.run.engine import Interactive, RunEngine, RunOptions
from angrr.run.output import OutputSink
from angrr.utils.formatting import err_console, print_error


def run(
    ctx: typer.Context,
    interactive: Annotated[
        Interactive | None,
        typer.Option(
            "--interactive",
            "-i",
            help="Prompt never, once, or always. Defaults to once.",
            case_sensitive=False,
        ),
    ] = None,
    no_prompt: Annotated[
        bool,
        typer.Option("--no-prompt", "-n", help="Never prompt (overridden by --interactive)."),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Do not remove anything."),
    ] = False,
    no_statistic: Annotated[
        bool,
        typer.Option("--no-statistic", help="Do not print statistics."),
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option("--output", help="Write removed paths to FILE ('-' for stdout)."),
    ] = None,
    output_unbuffered: Annotated[
        bool,
        typer.Option("--output-unbuffered", help="Disable output buffering."),
    ] = False,
    output_delimiter: Annotated[
        str,
        typer.Option("--output-delimiter", help="Delimiter between removed paths."),
    ] = "\n",
    null: Annotated[
        bool,
        typer.Option("--null", "-0", help="Use NUL as the output delimiter."),
    ] = False,
) -> None:
    """Apply retention policies to GC roots and profiles."""
    config = require_config(ctx)

    if interactive is None:
        interactive = Interactive.NEVER if no_prompt else Interactive.ONCE
    delimiter = b"\0" if null else os.fsencode(output_delimiter)

    try:
        sink = OutputSink.open(output, delimiter=delimiter, unbuffered=output_unbuffered)
        try:
            engine = RunEngine(
                config,
                RunOptions(interactive=interactive, dry_run=dry_run),
                current=Current.capture(),
                sink=sink,
            )
            engine.run()
            statistics = engine.finish()
        finally:
            sink.close()
    except AngrrError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not no_statistic:
        err_console.print(statistics.render(dry_run=dry_run), highlight=False)
