"""Unit tests for the removed-path output sink."""

import io
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from angrr.core.errors import OutputError
from angrr.run.output import OutputSink


class TestOutputSink:
    """Tests for OutputSink."""

    def test_no_trailing_delimiter(self) -> None:
        stream = io.BytesIO()
        sink = OutputSink(stream, delimiter=b"\n")

        sink.write(Path("/a"))
        sink.write(Path("/b/c"))
        sink.close()

        assert stream.getvalue() == b"/a\n/b/c"

    def test_nul_delimiter(self) -> None:
        stream = io.BytesIO()
        sink = OutputSink(stream, delimiter=b"\0")

        for name in ("/x", "/y", "/z"):
            sink.write(Path(name))

        assert stream.getvalue() == b"/x\0/y\0/z"

    def test_single_path(self) -> None:
        stream = io.BytesIO()
        OutputSink(stream).write(Path("/only"))

        assert stream.getvalue() == b"/only"

    def test_discarding_sink(self) -> None:
        sink = OutputSink.open(None)
        sink.write(Path("/a"))
        sink.close()

    def test_open_file(self, tmp_path: Path) -> None:
        output = tmp_path / "removed.txt"

        sink = OutputSink.open(output, delimiter=b",", unbuffered=True)
        sink.write(Path("/a"))
        sink.write(Path("/b"))
        sink.close()

        assert output.read_bytes() == b"/a,/b"

    def test_open_failure(self, tmp_path: Path) -> None:
        with pytest.raises(OutputError, match="failed to create output file"):
            OutputSink.open(tmp_path / "missing-dir" / "out.txt")

    def test_write_failure(self) -> None:
        stream = MagicMock()
        stream.write.side_effect = OSError("disk full")
        sink = OutputSink(stream)

        with pytest.raises(OutputError):
            sink.write(Path("/a"))
