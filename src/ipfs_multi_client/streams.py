"""
Byte sources for uploads.

``add`` accepts a finite buffer, a binary file object or a lazy iterable of
chunks. httpx multipart encodes file objects chunk by chunk, so iterables are
wrapped in a read-only, non-seekable file object instead of being collected.
"""
from __future__ import annotations

import io
from typing import IO, Iterable, Iterator, Union

__all__ = ["ByteSource", "IterableReader", "as_upload", "is_replayable"]

# Type alias for upload sources (buffer, file-like or iterable)
ByteSource = Union[bytes, bytearray, memoryview, IO[bytes], Iterable[bytes]]


class IterableReader(io.RawIOBase):
    """Expose an iterable of byte chunks through ``read()``."""

    def __init__(self, chunks: Iterable[bytes]):
        super().__init__()
        self._chunks: Iterator[bytes] = iter(chunks)
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        while not self._pending:
            try:
                self._pending = bytes(next(self._chunks))
            except StopIteration:
                return 0

        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size


def as_upload(source: ByteSource) -> Union[bytes, IO[bytes]]:
    """
    Normalize ``source`` into something httpx multipart can send.

    Returns:
        bytes for in-memory buffers, the file object itself for readers,
        an ``IterableReader`` for any other iterable

    Raises:
        TypeError: For text (``str``) or non-iterable sources
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    if isinstance(source, str):
        raise TypeError("Upload source must be bytes, not str; encode it first")
    if hasattr(source, "read"):
        return source
    try:
        return IterableReader(source)
    except TypeError as e:
        raise TypeError(f"Unsupported upload source: {type(source).__name__}") from e


def is_replayable(upload: Union[bytes, IO[bytes]]) -> bool:
    """Whether a request carrying ``upload`` can be sent again."""
    return isinstance(upload, bytes)
