"""Removed-path output sink.

Removed paths are written as a delimiter-joined stream (no trailing
delimiter) to a file, to standard output, or nowhere. The target is
chosen once when the sink is opened.
"""

import sys
import threading
from pathlib import Path
from typing import BinaryIO

from angrr.core.errors import OutputError

STDOUT_MARKER = Path("-")


class OutputSink:
    """Writes removed paths to a byte stream.

    Args:
        stream: Destination stream, or None to discard output.
        delimiter: Bytes written between consecutive paths.
        flush_each: Flush after every path.
        owns_stream: Close the stream when the sink is closed.
    """

    def __init__(
        self,
        stream: BinaryIO | None = None,
        *,
        delimiter: bytes = b"\n",
        flush_each: bool = False,
        owns_stream: bool = False,
    ) -> None:
        self._stream = stream
        self._delimiter = delimiter
        self._flush_each = flush_each
        self._owns_stream = owns_stream
        self._first = True
        self._lock = threading.Lock()

    @classmethod
    def open(
        cls,
        output: Path | None,
        *,
        delimiter: bytes = b"\n",
        unbuffered: bool = False,
    ) -> "OutputSink":
        """Open a sink for the given output target.

        Args:
            output: File path, ``-`` for standard output, or None to discard.
            delimiter: Bytes written between consecutive paths.
            unbuffered: Flush after every path instead of buffering.

        Raises:
            OutputError: If the output file cannot be created.
        """
        if output is None:
            return cls(None, delimiter=delimiter)
        if output == STDOUT_MARKER:
            return cls(sys.stdout.buffer, delimiter=delimiter, flush_each=unbuffered)
        try:
            stream = open(output, "wb", buffering=0 if unbuffered else -1)  # noqa: SIM115
        except OSError as e:
            raise OutputError(f"failed to create output file {output}: {e}") from e
        return cls(stream, delimiter=delimiter, owns_stream=True)

    def write(self, path: Path) -> None:
        """Append a path to the stream.

        Raises:
            OutputError: If writing fails.
        """
        if self._stream is None:
            return
        with self._lock:
            try:
                if not self._first:
                    self._stream.write(self._delimiter)
                self._first = False
                self._stream.write(bytes(path))
                if self._flush_each:
                    self._stream.flush()
            except OSError as e:
                raise OutputError(f"failed to write output: {e}") from e

    def flush(self) -> None:
        if self._stream is None:
            return
        with self._lock:
            try:
                self._stream.flush()
            except OSError as e:
                raise OutputError(f"failed to flush output: {e}") from e

    def close(self) -> None:
        """Flush, and close the stream if the sink opened it."""
        self.flush()
        if self._owns_stream and self._stream is not None:
            self._stream.close()
            self._stream = None
