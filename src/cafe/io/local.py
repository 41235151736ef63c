"""Local file readers yielding bounded chunks of a byte window."""

import asyncio
import os
from pathlib import Path
from typing import Optional, Union

from .base import DEFAULT_CHUNK_SIZE


class ChunkedFileReader:
    """Synchronous reader yielding ``length`` bytes from ``offset`` in chunks.

    The file is opened on construction and closed once the window is
    exhausted, on ``close()`` or when leaving a ``with`` block. WSGI servers
    call ``close()`` when a client disconnects, so an abandoned response
    releases its handle. Reads are unbuffered, so a file that shrinks while
    being streamed is reported instead of served from a stale buffer.
    """

    def __init__(self, path: Union[Path, str], offset: int = 0, length: Optional[int] = None,
                 *, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if offset < 0:
            raise IOError("Start offset cannot be negative")
        if length is not None and length < 0:
            raise IOError("Length cannot be negative")
        if chunk_size <= 0:
            raise ValueError("Chunk size must be positive")

        self.path = os.fspath(path)
        self.offset = offset
        self.chunk_size = chunk_size
        self.bytes_read = 0
        self._file = open(self.path, 'rb', buffering=0)
        try:
            size = os.fstat(self._file.fileno()).st_size
            self.length = size - offset if length is None else length
            self._file.seek(offset)
        except BaseException:
            self._file.close()
            self._file = None
            raise

    @property
    def closed(self) -> bool:
        return self._file is None

    @property
    def remaining(self) -> int:
        return self.length - self.bytes_read

    def read_chunk(self) -> Optional[bytes]:
        """Return the next chunk, or None once the window is exhausted."""
        if self._file is None:
            return None
        if self.remaining <= 0:
            self.close()
            return None

        try:
            chunk = self._file.read(min(self.chunk_size, self.remaining))
        except BaseException:
            self.close()
            raise
        if not chunk:
            expected = self.remaining
            self.close()
            raise IOError(f"Not enough data: expected {expected} more bytes at offset "
                          f"{self.offset + self.bytes_read} of {self.path}")

        self.bytes_read += len(chunk)
        if self.remaining <= 0:
            self.close()
        return chunk

    def __iter__(self):
        return self

    def __next__(self) -> bytes:
        chunk = self.read_chunk()
        if chunk is None:
            raise StopIteration
        return chunk

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Close the file handle if still open."""
        if self._file is not None:
            self._file.close()
            self._file = None


class AsyncChunkedFileReader:
    """Asynchronous chunk reader - thin wrapper around the sync reader."""

    def __init__(self, sync_reader: ChunkedFileReader):
        self._sync_reader = sync_reader

    @property
    def bytes_read(self) -> int:
        return self._sync_reader.bytes_read

    @property
    def length(self) -> int:
        return self._sync_reader.length

    @property
    def closed(self) -> bool:
        return self._sync_reader.closed

    async def read_chunk(self) -> Optional[bytes]:
        return await asyncio.to_thread(self._sync_reader.read_chunk)

    def __aiter__(self):
        return self

    async def __anext__(self) -> bytes:
        chunk = await self.read_chunk()
        if chunk is None:
            raise StopAsyncIteration
        return chunk

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self):
        """Close the underlying sync reader."""
        await asyncio.to_thread(self._sync_reader.close)


def open_range(path: Union[Path, str], offset: int = 0, length: Optional[int] = None,
               *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> ChunkedFileReader:
    """Create a synchronous chunk reader over ``[offset, offset + length)``."""
    return ChunkedFileReader(path, offset, length, chunk_size=chunk_size)


async def open_range_async(path: Union[Path, str], offset: int = 0, length: Optional[int] = None,
                           *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncChunkedFileReader:
    """Create an asynchronous chunk reader; the file is opened off the event loop."""
    sync_reader = await asyncio.to_thread(ChunkedFileReader, path, offset, length, chunk_size=chunk_size)
    return AsyncChunkedFileReader(sync_reader)
