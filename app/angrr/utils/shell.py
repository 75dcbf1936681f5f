"""Shell execution utilities.

Provides subprocess execution with captured output, used to run
external filter programs.
"""

import subprocess
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a shell command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0


def run_command(
    args: list[str],
    *,
    input_text: str | None = None,
    timeout: float | None = 60.0,
) -> CommandResult:
    """Execute a command and return the result.

    When input_text is given it is written to the child's stdin, which is
    then closed before waiting, so well-behaved programs see EOF.
    Undecodable output bytes are replaced rather than raising.

    Args:
        args: Command and arguments to execute.
        input_text: Text to feed on standard input. If None, stdin is empty.
        timeout: Maximum time in seconds to wait for command. None waits forever.

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
    """
    result = subprocess.run(
        args,
        input=input_text if input_text is not None else "",
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        timeout=timeout,
    )
    return CommandResult(
        stdout=result.stdout,
        stderr=result.stderr,
        returncode=result.returncode,
    )
