"""Tests for stream size probing."""

from __future__ import annotations

import io
from typing import Any

import pytest

from storekit.errors import InvalidFileError
from storekit.streams import as_stream, get_stream_size


class NonSeekableStream:
    """Readable stream without seek support."""

    def __init__(self, data: bytes) -> None:
        self._inner = io.BytesIO(data)

    def read(self, size: int = -1) -> bytes:
        return self._inner.read(size)

    def seekable(self) -> bool:
        return False


class BrokenSeekStream(io.BytesIO):
    """Claims to be seekable but fails when seeking to the end."""

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        if whence == io.SEEK_END:
            raise OSError("cannot seek to end")
        return super().seek(offset, whence)


class FailingReadStream:
    """Non-seekable stream whose reads fail."""

    def read(self, size: int = -1) -> bytes:
        raise OSError("device gone")


class TestSeekableStreams:
    """Seekable streams are measured in place."""

    def test_size_from_start(self) -> None:
        stream = io.BytesIO(b"hello world")

        result, size = get_stream_size(stream)

        assert size == 11
        assert result is stream
        assert stream.tell() == 0

    def test_size_from_current_position(self) -> None:
        stream = io.BytesIO(b"0123456789")
        stream.seek(4)

        result, size = get_stream_size(stream)

        assert size == 6
        assert result is stream
        assert stream.tell() == 4
        assert result.read() == b"456789"

    def test_empty_stream(self) -> None:
        _, size = get_stream_size(io.BytesIO(b""))

        assert size == 0

    def test_real_file(self, tmp_path: Any) -> None:
        path = tmp_path / "data.bin"
        path.write_bytes(b"x" * 4096)

        with path.open("rb") as f:
            result, size = get_stream_size(f)
            assert size == 4096
            assert result is f
            assert f.tell() == 0

    def test_seek_failure_raises_invalid_file(self) -> None:
        with pytest.raises(InvalidFileError):
            get_stream_size(BrokenSeekStream(b"abc"))


class TestNonSeekableStreams:
    """Non-seekable streams are buffered into memory."""

    def test_buffers_content(self) -> None:
        payload = b"streamed content" * 10000

        result, size = get_stream_size(NonSeekableStream(payload))

        assert size == len(payload)
        assert isinstance(result, io.BytesIO)
        assert result.read() == payload

    def test_read_errors_propagate(self) -> None:
        with pytest.raises(OSError, match="device gone"):
            get_stream_size(FailingReadStream())

    def test_unreadable_object_raises_invalid_file(self) -> None:
        with pytest.raises(InvalidFileError):
            get_stream_size(object())  # type: ignore[arg-type]


class TestBytesInput:
    """Bytes-like input is wrapped."""

    @pytest.mark.parametrize("data", [b"abc", bytearray(b"abc"), memoryview(b"abc")])
    def test_bytes_like(self, data: Any) -> None:
        result, size = get_stream_size(data)

        assert size == 3
        assert result.read() == b"abc"

    def test_as_stream_passes_streams_through(self) -> None:
        stream = io.BytesIO(b"abc")

        assert as_stream(stream) is stream
        assert as_stream(b"abc").read() == b"abc"
