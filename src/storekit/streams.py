"""Stream length probing for uploads.

Object upload APIs want a content length up front. Seekable sources report it
without being consumed; everything else is buffered in memory.
"""

from __future__ import annotations

import io
import logging
from typing import IO, Any, BinaryIO

from storekit.errors import InvalidFileError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024

StreamInput = BinaryIO | IO[bytes] | bytes | bytearray | memoryview


def _is_seekable(stream: Any) -> bool:
    """Check whether a stream supports absolute seeking."""
    seekable = getattr(stream, "seekable", None)
    if callable(seekable):
        try:
            return bool(seekable())
        except (OSError, ValueError):
            return False
    return callable(getattr(stream, "seek", None)) and callable(getattr(stream, "tell", None))


def as_stream(data: StreamInput) -> BinaryIO:
    """Wrap bytes-like input in a BytesIO; pass streams through unchanged.

    Raises:
        InvalidFileError: If data is neither bytes-like nor readable.
    """
    if isinstance(data, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(data))
    if not callable(getattr(data, "read", None)):
        raise InvalidFileError(f"Object of type {type(data).__name__} is not readable")
    return data  # type: ignore[return-value]


def get_stream_size(data: StreamInput) -> tuple[BinaryIO, int]:
    """Determine the number of bytes remaining in a stream.

    Seekable streams are measured from their current position to the end and
    returned unchanged, positioned where they were. Non-seekable streams are
    drained into memory and replaced by a BytesIO over the buffered content.

    Args:
        data: Readable binary stream, or a bytes-like object.

    Returns:
        Tuple of (readable stream, size in bytes).

    Raises:
        InvalidFileError: If a seekable stream fails while seeking to its end,
            or the input is not readable at all.
    """
    if isinstance(data, (bytes, bytearray, memoryview)):
        raw = bytes(data)
        return io.BytesIO(raw), len(raw)

    if _is_seekable(data):
        try:
            current = data.tell()
            end = data.seek(0, io.SEEK_END)
            if end is None:
                end = data.tell()
        except (OSError, ValueError) as e:
            raise InvalidFileError(f"Failed to seek stream: {e}", cause=e) from e
        data.seek(current, io.SEEK_SET)
        return data, end - current  # type: ignore[return-value]

    read = getattr(data, "read", None)
    if not callable(read):
        raise InvalidFileError(f"Object of type {type(data).__name__} is not readable")

    buf = bytearray()
    while True:
        chunk = read(_CHUNK_SIZE)
        if not chunk:
            break
        buf.extend(chunk)
    logger.debug("Buffered non-seekable stream into memory: %d bytes", len(buf))
    return io.BytesIO(bytes(buf)), len(buf)
