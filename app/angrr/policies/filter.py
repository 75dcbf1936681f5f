"""External filter programs.

A filter receives a JSON object describing a GC root on standard input
and decides by exit code alone: 0 keeps the root monitored, anything
else makes the policy ignore it. Output is only logged.
"""

import json
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from angrr.core.config import FilterConfig
from angrr.core.errors import FilterError
from angrr.utils.shell import run_command

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FilterInput:
    """JSON payload passed to a filter program.

    Attributes:
        path: Target of the GC root.
        gc_root: The GC root symlink.
    """

    path: Path
    gc_root: Path

    def to_json(self) -> str:
        """Serialize to the JSON object sent on stdin."""
        return json.dumps({"path": str(self.path), "gc_root": str(self.gc_root)})


class ExternalFilter:
    """Runs a filter program for each candidate GC root.

    The child blocks the run until it exits; there is no timeout.
    """

    def __init__(self, config: FilterConfig) -> None:
        self._program = config.program
        self._arguments = list(config.arguments)

    @property
    def command(self) -> list[str]:
        return [self._program, *self._arguments]

    def run(self, filter_input: FilterInput) -> bool:
        """Invoke the filter.

        Args:
            filter_input: Root description to send on stdin.

        Returns:
            True if the program exited with status 0.

        Raises:
            FilterError: If the program cannot be started or waited on.
        """
        logger.debug("starting filter program %s", self.command)
        try:
            result = run_command(self.command, input_text=filter_input.to_json(), timeout=None)
        except (OSError, subprocess.SubprocessError) as e:
            msg = f"failed to run external filter {self.command} on {filter_input}: {e}"
            raise FilterError(msg) from e

        if result.stdout:
            logger.debug("external filter stdout: %s", result.stdout)
        if result.stderr:
            logger.warning("external filter stderr: %s", result.stderr)
        return result.success
